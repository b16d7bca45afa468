import pytest

from daemonconf.utils import _to_text, atoi, parse_bool


@pytest.mark.parametrize(
    "value,expected",
    [
        ("42", 42),
        ("  -17", -17),
        ("+8", 8),
        ("12abc", 12),
        ("abc", 0),
        ("", 0),
        (None, 0),
        ("3.9", 3),
    ],
)
def test_atoi(value, expected):
    assert atoi(value) == expected


@pytest.mark.parametrize("value", ["Y", "yes", "1", "True", "t", "y", "2", "-1", "10"])
def test_parse_bool_true(value):
    assert parse_bool(value) is True


@pytest.mark.parametrize("value", ["0", "no", "", "false", "off", "N"])
def test_parse_bool_false(value):
    assert parse_bool(value, default=True) is False


def test_parse_bool_absent_uses_default():
    assert parse_bool(None) is False
    assert parse_bool(None, default=True) is True


def test_to_text():
    assert _to_text("x") == "x"
    assert _to_text(True) == "true"
    assert _to_text(False) == "false"
    assert _to_text(5) == "5"
    with pytest.raises(TypeError):
        _to_text(None)
