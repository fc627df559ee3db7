"""A rendezvous channel between threads of a :class:`Threads` scheduler."""

from __future__ import annotations

from concurrent.futures import Future
from enum import Enum, auto
from typing import Any, Generic, TypeVar

from microsched.threads import StateKind, ThreadList, Threads, ThreadState

T = TypeVar("T")


class _Mode(Enum):
    IDLE = auto()
    SENDERS_WAITING = auto()
    RECEIVERS_WAITING = auto()


class Channel(Generic[T]):
    """An unbuffered channel: a message passes only when both sides meet.

    A side that finds no partner waiting is blocked until one arrives.
    Blocked threads are served most recent first.
    """

    def __init__(self, threads: Threads) -> None:
        self._threads = threads
        self._mode = _Mode.IDLE
        self._waiters: ThreadList | None = None

    def _pop_waiter(self, expected: StateKind) -> Any:
        assert self._waiters is not None
        popped = self._waiters.pop(self._threads)
        if popped is None:
            raise RuntimeError("unexpected empty thread list")
        if self._waiters.is_empty():
            self._mode = _Mode.IDLE
            self._waiters = None
        _, state = popped
        if state.kind is not expected:
            raise RuntimeError(f"unexpected thread state {state.kind.name}")
        return state.payload

    def _block_current(self, mode: _Mode, state: ThreadState) -> None:
        if self._mode is _Mode.IDLE:
            waiters = ThreadList()
            waiters.put_current(self._threads, state)
            self._waiters = waiters
            self._mode = mode
        else:
            assert self._waiters is not None
            self._waiters.put_current(self._threads, state)

    def _deliver(self, something: T) -> None:
        slot: Future[T] = self._pop_waiter(StateKind.CHANNEL_RX_BLOCKED)
        slot.set_result(something)

    def _take(self) -> T:
        return self._pop_waiter(StateKind.CHANNEL_TX_BLOCKED)

    def send(self, something: T) -> None:
        """Send a message as the current thread.

        If a receiver waits it gets the message at once; otherwise the current
        thread blocks until a receiver takes it.
        """
        if self._mode is _Mode.RECEIVERS_WAITING:
            self._deliver(something)
        else:
            self._block_current(
                _Mode.SENDERS_WAITING, ThreadState.channel_tx_blocked(something)
            )

    def try_send(self, something: T) -> bool:
        """Send only if a receiver waits; return whether the message went out."""
        if self._mode is _Mode.RECEIVERS_WAITING:
            self._deliver(something)
            return True
        return False

    def recv(self) -> Future[T]:
        """Receive a message as the current thread.

        Returns a future for the message. It is already resolved if a sender
        was waiting; otherwise the current thread blocks and the future is
        resolved when a sender delivers.
        """
        future: Future[T] = Future()
        if self._mode is _Mode.SENDERS_WAITING:
            future.set_result(self._take())
        else:
            self._block_current(
                _Mode.RECEIVERS_WAITING, ThreadState.channel_rx_blocked(future)
            )
        return future

    def try_recv(self) -> T | None:
        """Take a message from a waiting sender, or return None if there is none."""
        if self._mode is _Mode.SENDERS_WAITING:
            return self._take()
        return None