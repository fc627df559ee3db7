"""Claiming named peripherals from a shared pool."""

from __future__ import annotations

import keyword
from collections.abc import Iterable, Mapping
from dataclasses import make_dataclass
from typing import Any

_RESERVED = frozenset({"take_from"})


class DefinePeripheralsError(Exception):
    """A peripheral could not be taken because it is no longer available."""

    def __init__(self, peripheral: str) -> None:
        super().__init__(f"peripheral `{peripheral}` is not available")
        self.peripheral = peripheral


class OptionalPeripherals:
    """A pool of peripherals, each of which can be taken out once."""

    def __init__(
        self, peripherals: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> None:
        self._slots: dict[str, Any] = dict(peripherals or {})
        self._slots.update(kwargs)

    def __contains__(self, name: object) -> bool:
        return self._slots.get(name) is not None  # type: ignore[call-overload]

    def __repr__(self) -> str:
        available = sorted(name for name, value in self._slots.items() if value is not None)
        return f"{type(self).__name__}(available={available})"

    def take(self, name: str) -> Any:
        """Remove and return peripheral ``name``, or None if already taken.

        Raises KeyError for a name the pool does not know.
        """
        if name not in self._slots:
            raise KeyError(name)
        value = self._slots[name]
        self._slots[name] = None
        return value


def define_peripherals(
    name: str, fields: Mapping[str, str] | Iterable[tuple[str, str]]
) -> type:
    """Create a class bundling peripherals taken from an :class:`OptionalPeripherals`.

    ``fields`` maps each attribute of the new class to the name of the
    peripheral it is taken from. The class gets a ``take_from(pool)``
    classmethod that takes every peripheral in order and raises
    :class:`DefinePeripheralsError` at the first one that is unavailable.
    """
    pairs = list(fields.items() if isinstance(fields, Mapping) else fields)
    if not name.isidentifier() or keyword.iskeyword(name):
        raise ValueError(f"invalid class name `{name}`")
    seen: set[str] = set()
    for attr, peripheral in pairs:
        if not attr.isidentifier() or keyword.iskeyword(attr) or attr in _RESERVED:
            raise ValueError(f"invalid field name `{attr}`")
        if attr in seen:
            raise ValueError(f"duplicate field `{attr}`")
        if not peripheral:
            raise ValueError(f"field `{attr}` names no peripheral")
        seen.add(attr)

    mapping = tuple(pairs)

    def take_from(cls: type, opt_peripherals: OptionalPeripherals) -> Any:
        values = {}
        for attr, peripheral in mapping:
            value = opt_peripherals.take(peripheral)
            if value is None:
                raise DefinePeripheralsError(peripheral)
            values[attr] = value
        return cls(**values)

    return make_dataclass(
        name,
        [(attr, Any) for attr, _ in pairs],
        namespace={"take_from": classmethod(take_from)},
    )