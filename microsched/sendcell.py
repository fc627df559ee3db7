"""Pass objects between tasks only while they stay on the same event loop."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


def current_executor_id() -> int:
    """Return an identifier for the running event loop.

    Raises RuntimeError when called outside a running event loop.
    """
    return id(asyncio.get_running_loop())


@dataclass(frozen=True)
class SendCell(Generic[T]):
    """A cell whose content may only be read on the loop it was created for.

    The check happens at run time: :meth:`get` hands out the content only
    when given the identifier of the executor the cell was made on.
    """

    inner: T
    executor_id: int

    def get(self, executor_id: int) -> T | None:
        """Return the content if ``executor_id`` matches, else None."""
        if executor_id == self.executor_id:
            return self.inner
        return None

    @classmethod
    async def new_async(cls, inner: T) -> SendCell[T]:
        """Create a cell bound to the running event loop; never yields."""
        return cls(inner, current_executor_id())

    async def get_async(self) -> T | None:
        """Return the content if running on the cell's event loop; never yields."""
        return self.get(current_executor_id())