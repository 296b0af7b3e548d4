#!/usr/bin/env python3
"""
🐧 PNGN imgcat - Configuration Module
=====================================
Copyright (c) 2025 PNGN-Tec LLC

Centralized Configuration System
=================================
Complete configuration for the terminal image viewer including:
- Resampling algorithm and glyph settings
- Network timeouts for remote images
- Worker thread limits for background loading
- Color profile override
- Logging destination and level

Configuration Overview
======================
There is no configuration file. Defaults live in the dataclasses below
and can be overridden from the environment:

    IMGCAT_ALGORITHM      nearest | bilinear | bicubic | lanczos
    IMGCAT_TIMEOUT        HTTP timeout in seconds
    IMGCAT_USER_AGENT     User-Agent header for HTTP fetches
    IMGCAT_MAX_THREADS    Background loader threads
    IMGCAT_COLOR_PROFILE  truecolor | ansi256 | ansi | ascii
    IMGCAT_LOG_LEVEL      DEBUG | INFO | WARNING | ERROR
    IMGCAT_LOG_FILE       Path that receives log records
    IMGCAT_DEBUG          true/1/yes forces DEBUG logging
"""

import threading
import logging
import os
from typing import Dict, Mapping, Optional
from dataclasses import dataclass, field
from enum import Enum

# Configure logging
logger = logging.getLogger('imgcat_config')

# ============================================================================
# CONFIGURATION ENUMS
# ============================================================================

class ScalingAlgorithm(Enum):
    """Image scaling algorithms"""
    NEAREST = "nearest"
    BILINEAR = "bilinear"
    BICUBIC = "bicubic"
    LANCZOS = "lanczos"


class ColorProfile(Enum):
    """Terminal color capability, best first"""
    TRUECOLOR = "truecolor"
    ANSI256 = "ansi256"
    ANSI = "ansi"
    ASCII = "ascii"


# ============================================================================
# RENDERING CONFIGURATION
# ============================================================================

@dataclass
class RenderingConfig:
    """Rasterizer and screen layout settings"""

    # Lanczos has a support radius of 3 in Pillow
    algorithm: ScalingAlgorithm = ScalingAlgorithm.LANCZOS

    # Upper half block: foreground paints the top pixel
    glyph: str = "▀"

    # Rows kept free under the image for the footer
    footer_rows: int = 1

    placeholder_suffix: str = "✨"

    def validate(self) -> bool:
        """Validate rendering configuration"""
        if len(self.glyph) != 1:
            raise ValueError("Glyph must be a single character")
        if self.footer_rows < 0:
            raise ValueError("Footer rows cannot be negative")
        return True


# ============================================================================
# NETWORK CONFIGURATION
# ============================================================================

@dataclass
class NetworkConfig:
    """HTTP fetch settings"""

    timeout_seconds: float = 30.0
    user_agent: str = "pngn-imgcat/1.0"

    def validate(self) -> bool:
        """Validate network configuration"""
        if self.timeout_seconds <= 0:
            raise ValueError("Network timeout must be positive")
        if not self.user_agent:
            raise ValueError("User agent cannot be empty")
        return True


# ============================================================================
# PERFORMANCE CONFIGURATION
# ============================================================================

@dataclass
class PerformanceConfig:
    """Thread settings for background loads"""

    max_worker_threads: int = 2
    shutdown_timeout: float = 2.0

    def validate(self) -> bool:
        """Validate performance configuration"""
        if self.max_worker_threads <= 0:
            raise ValueError("Max worker threads must be positive")
        if self.shutdown_timeout < 0:
            raise ValueError("Shutdown timeout cannot be negative")
        return True


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

@dataclass
class ViewerConfig:
    """Complete viewer configuration"""

    # Sub-configurations
    rendering: RenderingConfig = field(default_factory=RenderingConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    performance: PerformanceConfig = field(default_factory=PerformanceConfig)

    # None means detect from the terminal
    color_profile: Optional[ColorProfile] = None

    # System-wide settings
    debug_mode: bool = False
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    def validate(self) -> bool:
        """Validate entire configuration"""
        self.rendering.validate()
        self.network.validate()
        self.performance.validate()
        if logging.getLevelName(self.log_level.upper()) not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        return True


LOG_LEVELS = (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR, logging.CRITICAL)


# ============================================================================
# ENVIRONMENT OVERRIDES
# ============================================================================

def _parse_enum(enum_cls, name: str, value: str):
    try:
        return enum_cls(value.strip().lower())
    except ValueError:
        choices = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"{name} must be one of: {choices} (got {value!r})") from None


def _parse_number(kind, name: str, value: str):
    try:
        return kind(value)
    except ValueError:
        raise ValueError(f"{name} must be a number (got {value!r})") from None


def load_config(environ: Optional[Mapping[str, str]] = None) -> ViewerConfig:
    """
    Build a validated configuration from defaults and environment overrides.

    Args:
        environ: Mapping to read overrides from (os.environ if None)

    Returns:
        Validated ViewerConfig

    Raises:
        ValueError: If an override cannot be parsed or fails validation
    """
    if environ is None:
        environ = os.environ

    config = ViewerConfig()

    # Rendering settings
    if 'IMGCAT_ALGORITHM' in environ:
        config.rendering.algorithm = _parse_enum(
            ScalingAlgorithm, 'IMGCAT_ALGORITHM', environ['IMGCAT_ALGORITHM'])

    # Network settings
    if 'IMGCAT_TIMEOUT' in environ:
        config.network.timeout_seconds = _parse_number(
            float, 'IMGCAT_TIMEOUT', environ['IMGCAT_TIMEOUT'])
    if 'IMGCAT_USER_AGENT' in environ:
        config.network.user_agent = environ['IMGCAT_USER_AGENT']

    # Performance settings
    if 'IMGCAT_MAX_THREADS' in environ:
        config.performance.max_worker_threads = _parse_number(
            int, 'IMGCAT_MAX_THREADS', environ['IMGCAT_MAX_THREADS'])

    # Terminal capability override
    if environ.get('IMGCAT_COLOR_PROFILE'):
        config.color_profile = _parse_enum(
            ColorProfile, 'IMGCAT_COLOR_PROFILE', environ['IMGCAT_COLOR_PROFILE'])

    # Logging
    if 'IMGCAT_LOG_LEVEL' in environ:
        config.log_level = environ['IMGCAT_LOG_LEVEL'].upper()
    if environ.get('IMGCAT_LOG_FILE'):
        config.log_file = environ['IMGCAT_LOG_FILE']

    # Debug mode
    if 'IMGCAT_DEBUG' in environ:
        config.debug_mode = environ['IMGCAT_DEBUG'].lower() in ('true', '1', 'yes')
        if config.debug_mode:
            config.log_level = "DEBUG"

    config.validate()
    return config


# ============================================================================
# CONFIGURATION MANAGER (SINGLETON)
# ============================================================================

class ConfigurationManager:
    """
    Singleton configuration manager.
    Configuration is read from the environment once, on first access.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._config: Optional[ViewerConfig] = None
        self._config_lock = threading.RLock()
        self._initialized = True

    @property
    def config(self) -> ViewerConfig:
        """Get current configuration, loading it on first use"""
        with self._config_lock:
            if self._config is None:
                self._config = load_config()
                logger.info("Configuration loaded from environment")
            return self._config


# ============================================================================
# PUBLIC API FUNCTIONS
# ============================================================================

_manager = ConfigurationManager()

def get_config() -> ViewerConfig:
    """Get current viewer configuration"""
    return _manager.config


# ============================================================================
# LOGGING SETUP
# ============================================================================

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(message)s"

def configure_logging(config: ViewerConfig) -> Dict[str, object]:
    """
    Route log records away from the terminal.

    The viewer owns the whole screen, so records only go to a file when
    IMGCAT_LOG_FILE is set. Otherwise a NullHandler keeps Python's
    last-resort stderr handler from drawing over the image.

    Returns:
        Summary of the applied settings
    """
    root = logging.getLogger()
    level = logging.getLevelName(config.log_level.upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)

    if config.log_file:
        handler = logging.FileHandler(config.log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
    else:
        handler = logging.NullHandler()

    root.addHandler(handler)
    root.setLevel(level)

    logger.debug(f"Logging configured: level={config.log_level}, file={config.log_file}")
    return {'level': config.log_level, 'file': config.log_file}
