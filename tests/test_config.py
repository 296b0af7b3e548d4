import logging

import pytest

from config import (
    ColorProfile, ScalingAlgorithm, ViewerConfig, configure_logging, load_config,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_defaults():
    config = load_config({})
    assert config.rendering.algorithm is ScalingAlgorithm.LANCZOS
    assert config.rendering.glyph == "▀"
    assert config.rendering.footer_rows == 1
    assert config.color_profile is None
    assert config.log_file is None
    assert config.performance.max_worker_threads == 2


def test_environment_overrides():
    config = load_config({
        'IMGCAT_ALGORITHM': 'Bicubic',
        'IMGCAT_TIMEOUT': '2.5',
        'IMGCAT_USER_AGENT': 'tester/0.1',
        'IMGCAT_MAX_THREADS': '4',
        'IMGCAT_COLOR_PROFILE': 'ansi256',
        'IMGCAT_LOG_LEVEL': 'info',
    })
    assert config.rendering.algorithm is ScalingAlgorithm.BICUBIC
    assert config.network.timeout_seconds == 2.5
    assert config.network.user_agent == 'tester/0.1'
    assert config.performance.max_worker_threads == 4
    assert config.color_profile is ColorProfile.ANSI256
    assert config.log_level == 'INFO'


def test_debug_forces_debug_level():
    config = load_config({'IMGCAT_DEBUG': 'yes', 'IMGCAT_LOG_LEVEL': 'ERROR'})
    assert config.debug_mode is True
    assert config.log_level == 'DEBUG'


def test_empty_color_profile_means_detect():
    assert load_config({'IMGCAT_COLOR_PROFILE': ''}).color_profile is None


@pytest.mark.parametrize("environ, name", [
    ({'IMGCAT_ALGORITHM': 'sinc'}, 'IMGCAT_ALGORITHM'),
    ({'IMGCAT_COLOR_PROFILE': 'sixel'}, 'IMGCAT_COLOR_PROFILE'),
    ({'IMGCAT_TIMEOUT': 'soon'}, 'IMGCAT_TIMEOUT'),
    ({'IMGCAT_MAX_THREADS': 'many'}, 'IMGCAT_MAX_THREADS'),
])
def test_unparseable_override_names_variable(environ, name):
    with pytest.raises(ValueError, match=name):
        load_config(environ)


@pytest.mark.parametrize("environ", [
    {'IMGCAT_MAX_THREADS': '0'},
    {'IMGCAT_TIMEOUT': '-1'},
    {'IMGCAT_LOG_LEVEL': 'CHATTY'},
])
def test_invalid_values_fail_validation(environ):
    with pytest.raises(ValueError):
        load_config(environ)


def test_rendering_glyph_must_be_single_character():
    config = ViewerConfig()
    config.rendering.glyph = "▀▀"
    with pytest.raises(ValueError):
        config.validate()


def test_configure_logging_to_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "imgcat.log"
    config = load_config({'IMGCAT_LOG_FILE': str(log_file), 'IMGCAT_LOG_LEVEL': 'INFO'})

    configure_logging(config)
    logging.getLogger('imgcat_test').info("hello from the test")
    for handler in restore_root_logger.handlers:
        handler.flush()

    assert "hello from the test" in log_file.read_text()
    assert restore_root_logger.level == logging.INFO


def test_configure_logging_without_file_is_silent(restore_root_logger):
    configure_logging(load_config({}))
    assert len(restore_root_logger.handlers) == 1
    assert isinstance(restore_root_logger.handlers[0], logging.NullHandler)
