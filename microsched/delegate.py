"""Lend a mutable object to another task on the same event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from microsched.sendcell import SendCell, current_executor_id

T = TypeVar("T")
U = TypeVar("U")

_EMPTY: Any = object()


class _Signal(Generic[T]):
    """Holds at most one value; a new signal replaces an unconsumed one."""

    def __init__(self) -> None:
        self._value: Any = _EMPTY
        self._event = asyncio.Event()

    def signal(self, value: T) -> None:
        self._value = value
        self._event.set()

    async def wait(self) -> T:
        while self._value is _EMPTY:
            await self._event.wait()
        value = self._value
        self._value = _EMPTY
        self._event.clear()
        return value


class Delegate(Generic[T]):
    """Lend an object to another task, which then runs a function on it.

    :meth:`lend` waits until another task has called :meth:`run_with`, and
    :meth:`run_with` waits until an object has been lent. The object must be
    used on the event loop it was lent on.
    """

    def __init__(self) -> None:
        self._send: _Signal[SendCell[T]] = _Signal()
        self._reply: _Signal[None] = _Signal()

    async def lend(self, something: T) -> None:
        """Lend ``something`` and wait until a borrower has finished with it."""
        self._send.signal(SendCell(something, current_executor_id()))
        await self._reply.wait()

    async def run_with(self, func: Callable[[T], U]) -> U:
        """Wait for a lent object, call ``func`` on it and return its result."""
        cell = await self._send.wait()
        executor_id = current_executor_id()
        if cell.executor_id != executor_id:
            raise RuntimeError("lent object used on a different event loop")
        result = func(cell.inner)
        self._reply.signal(None)
        return result