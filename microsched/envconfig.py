"""Configuration values taken from the environment with defaults."""

from __future__ import annotations

import os
from collections.abc import Mapping

_USIZE_MAX = 2**64 - 1


class EnvParseError(ValueError):
    """An environment variable is set but its value cannot be parsed."""

    def __init__(self, name: str, value: str, type_name: str) -> None:
        super().__init__(
            f"Could not parse environment variable `{name}={value}` as {type_name}"
        )
        self.name = name
        self.value = value
        self.type_name = type_name


def _environ(environ: Mapping[str, str] | None) -> Mapping[str, str]:
    return os.environ if environ is None else environ


def usize_from_env_or(
    name: str, default: int, environ: Mapping[str, str] | None = None
) -> int:
    """Return the unsigned integer in variable ``name``, or ``default`` if unset.

    The value must be plain decimal digits fitting in 64 bits.
    """
    value = _environ(environ).get(name)
    if value is None:
        return default
    if not (value and value.isascii() and value.isdigit()):
        raise EnvParseError(name, value, "a usize")
    number = int(value)
    if number > _USIZE_MAX:
        raise EnvParseError(name, value, "a usize")
    return number


def str_from_env_or(
    name: str, default: str, environ: Mapping[str, str] | None = None
) -> str:
    """Return the string in variable ``name``, or ``default`` if unset."""
    value = _environ(environ).get(name)
    return default if value is None else value