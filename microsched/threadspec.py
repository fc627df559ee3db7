"""Parsing of thread attributes (stack size, priority) for declared threads."""

from __future__ import annotations

import re
from dataclasses import dataclass

_U64_MAX = 2**64 - 1
_U8_MAX = 2**8 - 1

_INT_LITERAL = re.compile(
    r"""
    (?P<digits>
        0x[0-9a-fA-F_]*[0-9a-fA-F][0-9a-fA-F_]*
      | 0o[0-7_]*[0-7][0-7_]*
      | 0b[01_]*[01][01_]*
      | [0-9][0-9_]*
    )
    (?P<suffix>[A-Za-z][A-Za-z0-9_]*)?
    """,
    re.VERBOSE,
)

_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class ThreadAttributeError(ValueError):
    """Thread attributes are malformed or hold an unusable value."""


def _split_literal(literal: str) -> tuple[int, str] | None:
    match = _INT_LITERAL.fullmatch(literal.strip())
    if match is None:
        return None
    digits = match.group("digits").replace("_", "")
    base = {"0x": 16, "0o": 8, "0b": 2}.get(digits[:2], 10)
    body = digits[2:] if base != 10 else digits
    return int(body, base), match.group("suffix") or ""


def _parse_bounded(literal: str, attr: str, maximum: int | None) -> int:
    parts = _split_literal(literal)
    if parts is None or (maximum is not None and parts[0] > maximum):
        raise ThreadAttributeError(f"`{attr}` must be a base-10 integer")
    value, suffix = parts
    if suffix:
        raise ThreadAttributeError(
            f"`{attr}` must be a base-10 integer without a suffix"
        )
    return value


def parse_base10(literal: str, attr: str) -> int:
    """Return the value of integer literal ``literal``; reject type suffixes."""
    return _parse_bounded(literal, attr, None)


@dataclass(frozen=True)
class ThreadAttributes:
    """Raw attributes as written: integer literals kept as text."""

    stack_size: str | None = None
    priority: str | None = None
    no_mangle: bool = False

    @classmethod
    def parse(cls, text: str) -> ThreadAttributes:
        """Parse ``stacksize = N, priority = N, no_mangle`` (all optional)."""
        stack_size: str | None = None
        priority: str | None = None
        no_mangle = False

        items = [item.strip() for item in text.split(",")]
        if items and items[-1] == "":
            items.pop()
        if items == [""]:
            items = []

        for item in items:
            if not item:
                raise ThreadAttributeError("expected attribute name")
            name, sep, value = (part.strip() for part in item.partition("="))
            if not _NAME.fullmatch(name):
                raise ThreadAttributeError(f"expected attribute name, found `{item}`")
            if name in ("stacksize", "priority"):
                if not sep:
                    raise ThreadAttributeError(f"expected `=` after `{name}`")
                if _split_literal(value) is None:
                    raise ThreadAttributeError(
                        f"expected integer literal for `{name}`, found `{value}`"
                    )
                if name == "stacksize":
                    stack_size = value
                else:
                    priority = value
            elif name == "no_mangle":
                if sep:
                    raise ThreadAttributeError("`no_mangle` takes no value")
                no_mangle = True
            else:
                raise ThreadAttributeError(f"unsupported parameter `{name}`")

        return cls(stack_size=stack_size, priority=priority, no_mangle=no_mangle)


@dataclass(frozen=True)
class ThreadParameters:
    """Resolved thread parameters with defaults applied."""

    stack_size: int = 2048
    priority: int = 1

    @classmethod
    def from_attributes(cls, attrs: ThreadAttributes) -> ThreadParameters:
        """Resolve attributes, using defaults for those not given."""
        default = cls()
        stack_size = (
            default.stack_size
            if attrs.stack_size is None
            else _parse_bounded(attrs.stack_size, "stack_size", _U64_MAX)
        )
        priority = (
            default.priority
            if attrs.priority is None
            else _parse_bounded(attrs.priority, "priority", _U8_MAX)
        )
        return cls(stack_size=stack_size, priority=priority)