"""Reading typed settings from environment variables."""

from __future__ import annotations

import math
import os
import re
from datetime import timedelta
from fractions import Fraction

__all__ = [
    "EnvNotFoundError",
    "get",
    "get_or",
    "get_int32_or",
    "get_int_or",
    "parse_bool",
    "parse_duration",
    "resolve_env_bool",
    "resolve_env_int",
    "resolve_env_duration",
]

_INT32_RANGE = (-(2**31), 2**31 - 1)
_INT64_RANGE = (-(2**63), 2**63 - 1)
_INTEGER = re.compile(r"[+-]?[0-9]+")

_TRUE_WORDS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE_WORDS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_NANOSECONDS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "\u00b5s": 1_000,
    "\u03bcs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 60 * 60 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")


class EnvNotFoundError(LookupError):
    """Raised when an environment variable is unset or empty."""

    def __init__(self, name: str) -> None:
        super().__init__(f"environment variable {name} not found")
        self.name = name


def get(name: str) -> str:
    """Return the value of the variable, raising if it is unset or empty."""
    value = os.environ.get(name, "")
    if not value:
        raise EnvNotFoundError(name)
    return value


def get_or(name: str, otherwise: str) -> str:
    """Return the value of the variable, or ``otherwise`` if it is unset or empty."""
    try:
        return get(name)
    except EnvNotFoundError:
        return otherwise


def _parse_int(text: str, bounds: tuple[int, int]) -> int:
    if not _INTEGER.fullmatch(text):
        raise ValueError(f"invalid integer syntax: {text!r}")
    value = int(text)
    low, high = bounds
    if not low <= value <= high:
        raise ValueError(f"integer out of range: {text!r}")
    return value


def get_int32_or(name: str, otherwise: int) -> int:
    """Return the variable as a 32-bit integer, or ``otherwise`` if missing or invalid."""
    try:
        return _parse_int(get(name), _INT32_RANGE)
    except (EnvNotFoundError, ValueError):
        return otherwise


def get_int_or(name: str, otherwise: int) -> int:
    """Return the variable as an integer, or ``otherwise`` if missing or invalid."""
    try:
        return _parse_int(get(name), _INT64_RANGE)
    except (EnvNotFoundError, ValueError):
        return otherwise


def parse_bool(text: str) -> bool:
    """Parse the boolean spellings 1, t, T, TRUE, true, True and their false forms."""
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ValueError(f"invalid boolean syntax: {text!r}")


def parse_duration(text: str) -> timedelta:
    """Parse a duration such as ``"300ms"``, ``"-1.5h"`` or ``"2h45m"``.

    Valid units are ns, us (or µs), ms, s, m and h. Precision below one
    microsecond is truncated.
    """
    rest = text
    negative = False
    if rest[:1] in ("-", "+"):
        negative = rest[0] == "-"
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration: {text!r}")

    limit = 2**63 if negative else 2**63 - 1
    total = 0
    while rest:
        match = _DURATION_PART.match(rest)
        whole, fraction, unit = match.groups()
        if not whole and not fraction:
            raise ValueError(f"invalid duration: {text!r}")
        if not unit:
            raise ValueError(f"missing unit in duration: {text!r}")
        scale = _NANOSECONDS_PER_UNIT.get(unit)
        if scale is None:
            raise ValueError(f"unknown unit {unit!r} in duration: {text!r}")

        amount = int(whole or "0") * scale
        if fraction:
            amount += math.floor(Fraction(int(fraction), 10 ** len(fraction)) * scale)
        total += amount
        if total > limit:
            raise ValueError(f"invalid duration: {text!r}")
        rest = rest[match.end():]

    microseconds = total // 1000
    return timedelta(microseconds=-microseconds if negative else microseconds)


def resolve_env_bool(name: str, default: bool) -> bool:
    """Return the variable parsed as a boolean, or ``default`` if unset or empty."""
    value = os.environ.get(name)
    if value:
        return parse_bool(value)
    return default


def resolve_env_int(name: str, default: int) -> int:
    """Return the variable parsed as an integer, or ``default`` if unset or empty."""
    value = os.environ.get(name)
    if value:
        return _parse_int(value, _INT64_RANGE)
    return default


def resolve_env_duration(name: str) -> timedelta | None:
    """Return the variable parsed as a duration, or ``None`` if unset or empty."""
    value = os.environ.get(name)
    if value:
        return parse_duration(value)
    return None