"""Fixed-size run queues built on circular linked lists over index arrays."""

from __future__ import annotations

SENTINEL = 0xFF
"""Marker for "no entry" in tail and next-index tables."""


class CList:
    """A set of circular singly linked lists sharing one next-index table.

    Every element (a thread id) has one slot in the next-index table, so an
    element can be a member of at most one list at a time.
    """

    def __init__(self, n_queues: int, n_threads: int) -> None:
        if n_queues <= 0:
            raise ValueError("n_queues must be positive")
        if not 0 < n_threads <= SENTINEL:
            raise ValueError(f"n_threads must be between 1 and {SENTINEL}")
        self._tail = [SENTINEL] * n_queues
        self._next = [SENTINEL] * n_threads

    @property
    def n_queues(self) -> int:
        return len(self._tail)

    @property
    def n_threads(self) -> int:
        return len(self._next)

    def _check_queue(self, rq: int) -> None:
        if not 0 <= rq < len(self._tail):
            raise ValueError(f"runqueue {rq} out of range 0..{len(self._tail)}")

    def _check_thread(self, n: int) -> None:
        if not 0 <= n < SENTINEL:
            raise ValueError(f"thread id {n} must be below {SENTINEL}")
        if n >= len(self._next):
            raise ValueError(f"thread id {n} out of range 0..{len(self._next)}")

    def is_empty(self, rq: int) -> bool:
        """Return True if list ``rq`` holds no elements."""
        self._check_queue(rq)
        return self._tail[rq] == SENTINEL

    def push(self, n: int, rq: int) -> None:
        """Append ``n`` to list ``rq``; does nothing if ``n`` is already linked."""
        self._check_thread(n)
        self._check_queue(rq)
        if self._next[n] != SENTINEL:
            return
        tail = self._tail[rq]
        if tail == SENTINEL:
            self._tail[rq] = n
            self._next[n] = n
        else:
            self._next[n] = self._next[tail]
            self._next[tail] = n
            self._tail[rq] = n

    def pop_head(self, rq: int) -> int | None:
        """Remove and return the first element of list ``rq``, or None if empty."""
        self._check_queue(rq)
        tail = self._tail[rq]
        if tail == SENTINEL:
            return None
        head = self._next[tail]
        if head == tail:
            self._tail[rq] = SENTINEL
        else:
            self._next[tail] = self._next[head]
        self._next[head] = SENTINEL
        return head

    def peek_head(self, rq: int) -> int | None:
        """Return the first element of list ``rq`` without removing it."""
        self._check_queue(rq)
        tail = self._tail[rq]
        if tail == SENTINEL:
            return None
        return self._next[tail]

    def advance(self, rq: int) -> None:
        """Rotate list ``rq`` by one, making the head the new tail."""
        self._check_queue(rq)
        tail = self._tail[rq]
        if tail != SENTINEL:
            self._tail[rq] = self._next[tail]


class RunQueue:
    """Priority run queue for ``n_queues`` levels and ``n_threads`` threads.

    A higher queue number means a higher priority. A bit cache records which
    queues are non-empty so the highest runnable level is found in one step.
    """

    def __init__(self, n_queues: int, n_threads: int) -> None:
        self._bitcache = 0
        self._queues = CList(n_queues, n_threads)

    def _check_queue(self, rq: int) -> None:
        if not 0 <= rq < self._queues.n_queues:
            raise ValueError(
                f"runqueue {rq} out of range 0..{self._queues.n_queues}"
            )

    def _check_thread(self, n: int) -> None:
        if not 0 <= n < self._queues.n_threads:
            raise ValueError(
                f"thread id {n} out of range 0..{self._queues.n_threads}"
            )

    def add(self, n: int, rq: int) -> None:
        """Add thread ``n`` to runqueue ``rq``."""
        self._check_thread(n)
        self._check_queue(rq)
        self._bitcache |= 1 << rq
        self._queues.push(n, rq)

    def remove(self, n: int, rq: int) -> None:
        """Remove thread ``n`` from runqueue ``rq``.

        Only the head of the queue can be removed; anything else is an error.
        """
        self._check_thread(n)
        self._check_queue(rq)
        popped = self._queues.pop_head(rq)
        if self._queues.is_empty(rq):
            self._bitcache &= ~(1 << rq)
        if popped != n:
            raise ValueError(
                f"thread {n} is not the head of runqueue {rq} (head was {popped})"
            )

    def get_next(self) -> int | None:
        """Return the head of the highest-priority non-empty queue."""
        if not self._bitcache:
            return None
        rq = self._bitcache.bit_length() - 1
        return self._queues.peek_head(rq)

    def advance(self, rq: int) -> None:
        """Rotate runqueue ``rq`` so the next thread of that priority runs."""
        self._check_queue(rq)
        self._queues.advance(rq)