from datetime import timedelta

import pytest

from scalehttp.env import (
    EnvNotFoundError,
    get,
    get_int32_or,
    get_int_or,
    get_or,
    parse_bool,
    parse_duration,
    resolve_env_bool,
    resolve_env_duration,
    resolve_env_int,
)


def test_resolve_missing_bool(monkeypatch):
    monkeypatch.delenv("missing_bool", raising=False)
    assert resolve_env_bool("missing_bool", True) is True

    monkeypatch.setenv("empty_bool", "")
    assert resolve_env_bool("empty_bool", True) is True


def test_resolve_invalid_bool(monkeypatch):
    monkeypatch.setenv("blank_bool", "    ")
    with pytest.raises(ValueError):
        resolve_env_bool("blank_bool", True)

    monkeypatch.setenv("invalid_bool", "deux heures")
    with pytest.raises(ValueError):
        resolve_env_bool("invalid_bool", True)


def test_resolve_valid_bool(monkeypatch):
    monkeypatch.setenv("valid_bool", "true")
    assert resolve_env_bool("valid_bool", False) is True

    monkeypatch.setenv("valid_bool", "false")
    assert resolve_env_bool("valid_bool", True) is False


def test_resolve_missing_int(monkeypatch):
    monkeypatch.delenv("missing_int", raising=False)
    assert resolve_env_int("missing_int", 1) == 1

    monkeypatch.setenv("empty_int", "")
    assert resolve_env_int("empty_int", 1) == 1


def test_resolve_invalid_int(monkeypatch):
    monkeypatch.setenv("blank_int", "    ")
    with pytest.raises(ValueError):
        resolve_env_int("blank_int", 1)

    monkeypatch.setenv("invalid_int", "deux heures")
    with pytest.raises(ValueError):
        resolve_env_int("invalid_int", 1)


def test_resolve_valid_int(monkeypatch):
    monkeypatch.setenv("valid_int", "2")
    assert resolve_env_int("valid_int", 1) == 2


def test_resolve_missing_duration(monkeypatch):
    monkeypatch.delenv("missing_duration", raising=False)
    assert resolve_env_duration("missing_duration") is None

    monkeypatch.setenv("empty_duration", "")
    assert resolve_env_duration("empty_duration") is None


def test_resolve_invalid_duration(monkeypatch):
    monkeypatch.setenv("blank_duration", "    ")
    with pytest.raises(ValueError):
        resolve_env_duration("blank_duration")

    monkeypatch.setenv("invalid_duration", "deux heures")
    with pytest.raises(ValueError):
        resolve_env_duration("invalid_duration")


def test_resolve_valid_duration(monkeypatch):
    monkeypatch.setenv("valid_duration_seconds", "8s")
    assert resolve_env_duration("valid_duration_seconds") == timedelta(seconds=8)

    monkeypatch.setenv("valid_duration_minutes", "30m")
    assert resolve_env_duration("valid_duration_minutes") == timedelta(minutes=30)


def test_get_returns_value(monkeypatch):
    monkeypatch.setenv("SCALEHTTP_TEST_VALUE", "abc")
    assert get("SCALEHTTP_TEST_VALUE") == "abc"


@pytest.mark.parametrize("value", [None, ""])
def test_get_raises_when_missing_or_empty(monkeypatch, value):
    if value is None:
        monkeypatch.delenv("SCALEHTTP_TEST_VALUE", raising=False)
    else:
        monkeypatch.setenv("SCALEHTTP_TEST_VALUE", value)
    with pytest.raises(EnvNotFoundError) as info:
        get("SCALEHTTP_TEST_VALUE")
    assert info.value.name == "SCALEHTTP_TEST_VALUE"


def test_get_or(monkeypatch):
    monkeypatch.delenv("SCALEHTTP_TEST_VALUE", raising=False)
    assert get_or("SCALEHTTP_TEST_VALUE", "fallback") == "fallback"
    monkeypatch.setenv("SCALEHTTP_TEST_VALUE", "set")
    assert get_or("SCALEHTTP_TEST_VALUE", "fallback") == "set"


@pytest.mark.parametrize(
    ("value", "expected"),
    [("42", 42), ("-7", -7), ("+3", 3), ("2147483647", 2147483647),
     ("2147483648", 5), ("abc", 5), (" 1", 5), ("1_000", 5)],
)
def test_get_int32_or(monkeypatch, value, expected):
    monkeypatch.setenv("SCALEHTTP_TEST_INT", value)
    assert get_int32_or("SCALEHTTP_TEST_INT", 5) == expected


def test_get_int32_or_missing(monkeypatch):
    monkeypatch.delenv("SCALEHTTP_TEST_INT", raising=False)
    assert get_int32_or("SCALEHTTP_TEST_INT", 9) == 9


@pytest.mark.parametrize(
    ("value", "expected"),
    [("2147483648", 2147483648), ("9223372036854775808", 1), ("1.5", 1)],
)
def test_get_int_or(monkeypatch, value, expected):
    monkeypatch.setenv("SCALEHTTP_TEST_INT", value)
    assert get_int_or("SCALEHTTP_TEST_INT", 1) == expected


@pytest.mark.parametrize("text", ["1", "t", "T", "TRUE", "true", "True"])
def test_parse_bool_true(text):
    assert parse_bool(text) is True


@pytest.mark.parametrize("text", ["0", "f", "F", "FALSE", "false", "False"])
def test_parse_bool_false(text):
    assert parse_bool(text) is False


@pytest.mark.parametrize("text", ["", "yes", "tRUE", " true"])
def test_parse_bool_invalid(text):
    with pytest.raises(ValueError):
        parse_bool(text)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0", timedelta(0)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("1.5s", timedelta(seconds=1.5)),
        ("-2m", timedelta(minutes=-2)),
        ("+5ms", timedelta(milliseconds=5)),
        ("300ms", timedelta(milliseconds=300)),
        ("1500ns", timedelta(microseconds=1)),
        ("2\u00b5s", timedelta(microseconds=2)),
        (".5h", timedelta(minutes=30)),
    ],
)
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["", "-", "1", ".s", "5x", "1.5", "s", "9999999999999h"])
def test_parse_duration_invalid(text):
    with pytest.raises(ValueError):
        parse_duration(text)