# microsched

microsched holds the scheduling core of a small embedded kernel, written in
plain Python with no dependencies outside the standard library. It is
intended for working through scheduling behaviour and testing it on a
workstation.

## What is in the package

- `microsched.runqueue`: `CList` keeps one circular list per priority level,
  all sharing one next-index table. `RunQueue` builds on it. `get_next()`
  returns the head of the highest non-empty priority. `advance(rq)` rotates
  one priority round-robin. `remove(n, rq)` only removes the head of a queue
  and raises `ValueError` for any other thread.
- `microsched.threads`: `Threads` is a scheduler with a fixed number of
  thread slots (16 by default) and priority levels (12 by default). It covers
  the following:
  - `create`, `start_threading`, `schedule`, `yield_same`, `sleep`, `wakeup`
    and `cleanup`.
  - `get_state`, `set_state`, `current` and `current_pid`.
  - Thread flags: `flag_set`, `flag_wait_any`, `flag_wait_all`,
    `flag_wait_one`, `flag_clear` and `flag_get`. Flags are 16 bits wide.
    A wait returns `None` when it had to block the current thread.
  - Thread states are `ThreadState` values. Each has a `StateKind` and an
    optional payload, such as the `WaitMode` of a thread blocked on flags.
  - `ThreadList` is a wait list of blocked threads. The most recent waiter is
    popped first.
- `microsched.lock`: `Lock` is a lock that holds no data. If the lock is held,
  `acquire()` blocks the current thread. `release()` hands the lock to the
  most recent waiter, or frees it when no thread is waiting. `try_acquire()`
  and `Lock.new_locked(threads)` are also provided.
- `microsched.channel`: `Channel` is an unbuffered rendezvous channel.
  `send` and `recv` block the current thread when no partner is waiting.
  `recv` returns a `concurrent.futures.Future` that resolves to the message.
  `try_send` and `try_recv` never block.
- `microsched.faults`: decodes Cortex-M fault registers.
  - `FaultStatus.from_registers(cfsr, hfsr)` decodes the fault status
    registers.
  - `ExceptionFrame` holds the stacked registers.
  - `ipsr_isr_number_to_str` names an exception number.
  - `format_hardfault(...)` renders the full hard fault report as text.
- `microsched.sendcell`: `SendCell` ties a value to an asyncio event loop.
  `get(executor_id)` returns the value only for a matching loop id, and
  `None` otherwise. `current_executor_id()` gives the id of the running loop.
  `SendCell.new_async` and `get_async` use the running loop.
- `microsched.delegate`: `Delegate` lends an object from one asyncio task to
  another. `await delegate.lend(obj)` waits until another task has run
  `await delegate.run_with(func)` on the object.
- `microsched.peripherals`: `OptionalPeripherals` is a pool of named
  resources, each of which `take(name)` hands out once. `define_peripherals`
  builds a dataclass whose `take_from(pool)` claims a set of them. It raises
  `DefinePeripheralsError` when one of them is already gone.
- `microsched.envconfig`: `usize_from_env_or` and `str_from_env_or` read
  settings from the environment, or from a mapping you pass in. When the
  variable is unset they return the default. `usize_from_env_or` raises
  `EnvParseError` for a value that is not an unsigned decimal integer.
- `microsched.threadspec`: `ThreadAttributes.parse` reads attribute text such
  as `stacksize = 1024, priority = 2, no_mangle`.
  `ThreadParameters.from_attributes` resolves it against the defaults, which
  are a stack size of 2048 and priority 1. Malformed input raises
  `ThreadAttributeError`.

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install .[test]
```

## Examples

```python
from microsched.runqueue import RunQueue

rq = RunQueue(8, 32)
rq.add(0, 0)
rq.add(1, 0)
rq.add(2, 1)
assert rq.get_next() == 2   # higher priority wins
rq.remove(2, 1)
assert rq.get_next() == 0
rq.advance(0)               # round-robin within priority 0
assert rq.get_next() == 1
```

```python
from microsched.lock import Lock
from microsched.threads import Threads, ThreadState

threads = Threads()
a = threads.create(print, None, 1024, 1)
b = threads.create(print, None, 1024, 1)
threads.start_threading()          # thread a is current
lock = Lock(threads)
lock.acquire()                     # a takes the lock
threads.yield_same()               # b is current
lock.acquire()                     # b blocks, a runs again
assert threads.get_state(b) == ThreadState.LOCK_BLOCKED
lock.release()                     # the lock passes to b
assert threads.get_state(b) == ThreadState.RUNNING
```

```python
from microsched.threadspec import ThreadAttributes, ThreadParameters

params = ThreadParameters.from_attributes(
    ThreadAttributes.parse("stacksize = 1024, priority = 2")
)
assert (params.stack_size, params.priority) == (1024, 2)
```

## What the package does not do

- Threads have no stacks and do not execute on their own. `Threads` tracks
  the scheduler's view of each thread and decides which one is current. The
  caller acts as the current thread by making calls on its behalf. The
  functions given to `create` are stored but never called.
- Nothing here touches hardware. `microsched.faults` formats register values
  that you supply; it does not read them.
- There is no executor, networking, USB or Wi-Fi support, and no command-line
  program.

## Running the tests

```
pytest
```