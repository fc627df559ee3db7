"""Thread table, scheduling decisions, thread flags and wait lists.

Threads here do not run on their own stacks. A :class:`Threads` object keeps
the scheduler's view of every thread and decides which one is current.
Calls made "as the current thread" act on the thread that is current when
they are made. A call that would block parks the thread and switches to the
next runnable one straight away.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, ClassVar

from microsched.runqueue import RunQueue

SCHED_PRIO_LEVELS = 12
"""Default number of priority levels."""

THREADS_NUMOF = 16
"""Default number of thread slots."""

FLAGS_MAX = 0xFFFF
"""Thread flags are 16 bits wide."""


class StateKind(Enum):
    """The kinds of state a thread can be in."""

    INVALID = auto()
    RUNNING = auto()
    PAUSED = auto()
    LOCK_BLOCKED = auto()
    FLAG_BLOCKED = auto()
    CHANNEL_RX_BLOCKED = auto()
    CHANNEL_TX_BLOCKED = auto()
    ZOMBIE = auto()


@dataclass(frozen=True)
class WaitMode:
    """What a thread blocked on flags is waiting for."""

    bits: int
    require_all: bool = False

    @classmethod
    def any_of(cls, bits: int) -> WaitMode:
        return cls(bits, require_all=False)

    @classmethod
    def all_of(cls, bits: int) -> WaitMode:
        return cls(bits, require_all=True)

    def is_satisfied(self, flags: int) -> bool:
        """Return True if ``flags`` would end this wait."""
        if self.require_all:
            return flags & self.bits == self.bits
        return flags & self.bits != 0


@dataclass(frozen=True)
class ThreadState:
    """A thread's state, with the data some states carry."""

    kind: StateKind
    payload: Any = None

    INVALID: ClassVar[ThreadState]
    RUNNING: ClassVar[ThreadState]
    PAUSED: ClassVar[ThreadState]
    LOCK_BLOCKED: ClassVar[ThreadState]
    ZOMBIE: ClassVar[ThreadState]

    @classmethod
    def flag_blocked(cls, mode: WaitMode) -> ThreadState:
        return cls(StateKind.FLAG_BLOCKED, mode)

    @classmethod
    def channel_rx_blocked(cls, slot: Any) -> ThreadState:
        return cls(StateKind.CHANNEL_RX_BLOCKED, slot)

    @classmethod
    def channel_tx_blocked(cls, value: Any) -> ThreadState:
        return cls(StateKind.CHANNEL_TX_BLOCKED, value)

    @property
    def is_running(self) -> bool:
        return self.kind is StateKind.RUNNING


ThreadState.INVALID = ThreadState(StateKind.INVALID)
ThreadState.RUNNING = ThreadState(StateKind.RUNNING)
ThreadState.PAUSED = ThreadState(StateKind.PAUSED)
ThreadState.LOCK_BLOCKED = ThreadState(StateKind.LOCK_BLOCKED)
ThreadState.ZOMBIE = ThreadState(StateKind.ZOMBIE)


@dataclass
class Thread:
    """One slot of the thread table."""

    pid: int = 0
    state: ThreadState = field(default_factory=lambda: ThreadState.INVALID)
    prio: int = 0
    flags: int = 0
    func: Callable[[Any], Any] | None = None
    arg: Any = None
    stack_size: int = 0


class ThreadList:
    """A list of threads blocked on the same object.

    The most recently added thread is the head and is popped first.
    """

    def __init__(self) -> None:
        self.head: int | None = None

    def put_current(self, threads: Threads, state: ThreadState) -> None:
        """Block the current thread in ``state`` and add it to this list."""
        with threads._cs:
            thread = threads._require_current()
            threads._blocklist[thread.pid] = self.head
            self.head = thread.pid
            threads.set_state(thread.pid, state)
            threads.schedule()

    def pop(self, threads: Threads) -> tuple[int, ThreadState] | None:
        """Make the head runnable again; return its id and previous state."""
        with threads._cs:
            head = self.head
            if head is None:
                return None
            self.head = threads._blocklist[head]
            threads._blocklist[head] = None
            old_state = threads.set_state(head, ThreadState.RUNNING)
            threads.schedule()
            return head, old_state

    def is_empty(self) -> bool:
        return self.head is None


class Threads:
    """All scheduler state: the thread table, run queue and current thread."""

    def __init__(
        self,
        prio_levels: int = SCHED_PRIO_LEVELS,
        threads_numof: int = THREADS_NUMOF,
    ) -> None:
        self._runqueue = RunQueue(prio_levels, threads_numof)
        self._prio_levels = prio_levels
        self._threads = [Thread() for _ in range(threads_numof)]
        self._blocklist: list[int | None] = [None] * threads_numof
        self._current: int | None = None
        self._started = False
        self._cs = threading.RLock()

    # -- helpers -----------------------------------------------------------

    def _check_pid(self, pid: int) -> None:
        if not 0 <= pid < len(self._threads):
            raise ValueError(f"thread id {pid} out of range 0..{len(self._threads)}")

    @staticmethod
    def _check_mask(mask: int) -> None:
        if not 0 <= mask <= FLAGS_MAX:
            raise ValueError(f"flag mask {mask:#x} does not fit in 16 bits")

    def _require_current(self) -> Thread:
        thread = self.current()
        if thread is None:
            raise RuntimeError("no current thread")
        return thread

    # -- thread table ------------------------------------------------------

    def create(
        self, func: Callable[[Any], Any], arg: Any, stack_size: int, prio: int
    ) -> int:
        """Create a runnable thread in the first free slot and return its id."""
        if not 0 <= prio < self._prio_levels:
            raise ValueError(f"priority {prio} out of range 0..{self._prio_levels}")
        if stack_size <= 0:
            raise ValueError("stack size must be positive")
        with self._cs:
            thread = next(
                (t for t in self._threads if t.state.kind is StateKind.INVALID), None
            )
            if thread is None:
                raise RuntimeError("no free thread slot")
            pid = self._threads.index(thread)
            thread.pid = pid
            thread.prio = prio
            thread.func = func
            thread.arg = arg
            thread.stack_size = stack_size
            thread.state = ThreadState.PAUSED
            self.set_state(pid, ThreadState.RUNNING)
            return pid

    def current(self) -> Thread | None:
        """Return the current thread, or None before start or while idle."""
        with self._cs:
            if self._current is None:
                return None
            return self._threads[self._current]

    def current_pid(self) -> int | None:
        return self._current

    def is_valid_pid(self, thread_id: int) -> bool:
        if not 0 <= thread_id < len(self._threads):
            return False
        return self._threads[thread_id].state.kind is not StateKind.INVALID

    def get_state(self, thread_id: int) -> ThreadState | None:
        with self._cs:
            if not self.is_valid_pid(thread_id):
                return None
            return self._threads[thread_id].state

    def set_state(self, pid: int, state: ThreadState) -> ThreadState:
        """Set a thread's state, keeping the run queue in step; return the old one."""
        self._check_pid(pid)
        with self._cs:
            thread = self._threads[pid]
            old_state = thread.state
            thread.state = state
            if not old_state.is_running and state.is_running:
                self._runqueue.add(thread.pid, thread.prio)
            elif old_state.is_running and not state.is_running:
                self._runqueue.remove(thread.pid, thread.prio)
            return old_state

    # -- scheduling --------------------------------------------------------

    def schedule(self) -> int | None:
        """Switch to the highest-priority runnable thread and return its id.

        Before threading has started this does nothing. With nothing
        runnable the scheduler is idle and there is no current thread.
        """
        with self._cs:
            if not self._started:
                return None
            self._current = self._runqueue.get_next()
            return self._current

    def start_threading(self) -> int:
        """Make the first runnable thread current; may only be called once."""
        with self._cs:
            if self._started:
                raise RuntimeError("threading already started")
            next_pid = self._runqueue.get_next()
            if next_pid is None:
                raise RuntimeError("no runnable thread to start")
            self._started = True
            self._current = next_pid
            return next_pid

    def cleanup(self) -> None:
        """End the current thread, freeing its slot."""
        with self._cs:
            thread = self._require_current()
            self.set_state(thread.pid, ThreadState.INVALID)
            self.schedule()

    def yield_same(self) -> None:
        """Let the next thread of the current thread's priority run."""
        with self._cs:
            thread = self._require_current()
            self._runqueue.advance(thread.prio)
            self.schedule()

    def sleep(self) -> None:
        """Pause the current thread."""
        with self._cs:
            thread = self._require_current()
            self.set_state(thread.pid, ThreadState.PAUSED)
            self.schedule()

    def wakeup(self, thread_id: int) -> bool:
        """Resume a paused thread; return False if it was not paused."""
        with self._cs:
            state = self.get_state(thread_id)
            if state is None or state.kind is not StateKind.PAUSED:
                return False
            self.set_state(thread_id, ThreadState.RUNNING)
            self.schedule()
            return True

    # -- thread flags ------------------------------------------------------

    def flag_set(self, thread_id: int, mask: int) -> None:
        """Set flags on a thread, waking it if that ends its wait."""
        self._check_pid(thread_id)
        self._check_mask(mask)
        with self._cs:
            thread = self._threads[thread_id]
            thread.flags |= mask
            state = thread.state
            if state.kind is StateKind.FLAG_BLOCKED and state.payload.is_satisfied(
                thread.flags
            ):
                self.set_state(thread_id, ThreadState.RUNNING)
                self.schedule()

    def _flag_block(self, thread: Thread, mode: WaitMode) -> None:
        self.set_state(thread.pid, ThreadState.flag_blocked(mode))
        self.schedule()

    def flag_wait_all(self, mask: int) -> int | None:
        """Take the current thread's flags in ``mask`` if any are set.

        Otherwise block until all of ``mask`` is set and return None; the
        call is then repeated once the thread runs again.
        """
        self._check_mask(mask)
        with self._cs:
            thread = self._require_current()
            if thread.flags & mask:
                result = thread.flags & mask
                thread.flags &= ~mask
                return result
            self._flag_block(thread, WaitMode.all_of(mask))
            return None

    def flag_wait_any(self, mask: int) -> int | None:
        """Take the flags in ``mask`` if any are set, else block and return None."""
        self._check_mask(mask)
        with self._cs:
            thread = self._require_current()
            result = thread.flags & mask
            if result:
                thread.flags &= ~result
                return result
            self._flag_block(thread, WaitMode.any_of(mask))
            return None

    def flag_wait_one(self, mask: int) -> int | None:
        """Take the lowest set flag in ``mask``, else block and return None."""
        self._check_mask(mask)
        with self._cs:
            thread = self._require_current()
            pending = thread.flags & mask
            if pending:
                lowest = pending & -pending
                thread.flags &= ~lowest
                return lowest
            self._flag_block(thread, WaitMode.any_of(mask))
            return None

    def flag_clear(self, mask: int) -> int:
        """Clear flags of the current thread; return those that were set."""
        self._check_mask(mask)
        with self._cs:
            thread = self._require_current()
            result = thread.flags & mask
            thread.flags &= ~mask
            return result

    def flag_get(self) -> int:
        """Return the current thread's flags."""
        with self._cs:
            return self._require_current().flags