from imgcat_width import fit_width, get_width


def test_ascii_width():
    assert get_width("") == 0
    assert get_width("q to quit") == 9


def test_wide_characters_take_two_columns():
    assert get_width("日本") == 4


def test_control_characters_take_no_columns():
    assert get_width("a\x1bb") == 2


def test_fit_keeps_short_text():
    assert fit_width("hello", 10) == "hello"
    assert fit_width("hello", 5) == "hello"


def test_fit_truncates_with_ellipsis():
    assert fit_width("hello world", 6) == "hello…"


def test_fit_never_splits_wide_characters():
    fitted = fit_width("日本語テキスト", 6)
    assert fitted == "日本…"
    assert get_width(fitted) <= 6


def test_fit_without_room():
    assert fit_width("hello", 0) == ""
    assert fit_width("hello", 1) == "…"
