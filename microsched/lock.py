"""A data-less lock whose waiters are threads of a :class:`Threads` scheduler."""

from __future__ import annotations

from microsched.threads import ThreadList, Threads, ThreadState


class Lock:
    """A basic locking object.

    It behaves like a mutex that carries no data. A thread that tries to take
    a held lock is parked until the lock is handed to it by :meth:`release`.
    """

    def __init__(self, threads: Threads) -> None:
        self._threads = threads
        self._waiters: ThreadList | None = None

    @classmethod
    def new_locked(cls, threads: Threads) -> Lock:
        """Create a lock that starts out held."""
        lock = cls(threads)
        lock._waiters = ThreadList()
        return lock

    def __repr__(self) -> str:
        return f"{type(self).__name__}(locked={self.is_locked()})"

    def is_locked(self) -> bool:
        """Return True if the lock is held."""
        return self._waiters is not None

    def acquire(self) -> None:
        """Take the lock as the current thread.

        If the lock is free it is taken at once. Otherwise the current thread
        is blocked and becomes the owner when the lock is released to it.
        """
        if self._waiters is None:
            self._waiters = ThreadList()
        else:
            self._waiters.put_current(self._threads, ThreadState.LOCK_BLOCKED)

    def try_acquire(self) -> bool:
        """Take the lock if it is free; return whether it was taken."""
        if self._waiters is None:
            self._waiters = ThreadList()
            return True
        return False

    def release(self) -> None:
        """Release the lock.

        If threads wait for it, the most recent waiter is woken and now holds
        the lock. Without waiters the lock becomes free. Releasing a free lock
        does nothing.
        """
        if self._waiters is None:
            return
        if self._waiters.pop(self._threads) is None:
            self._waiters = None