import pytest

from microsched.threads import (
    THREADS_NUMOF,
    StateKind,
    Thread,
    ThreadList,
    Threads,
    ThreadState,
    WaitMode,
)


def noop(_arg):
    return None


def make(threads, prio=0, arg=None):
    return threads.create(noop, arg, 2048, prio)


def test_create_makes_runnable_valid_threads():
    threads = Threads()
    a = make(threads, arg=1)
    b = make(threads, arg=2)
    assert a != b
    assert threads.get_state(a) == ThreadState.RUNNING
    assert threads.is_valid_pid(b)
    assert not threads.is_valid_pid(THREADS_NUMOF)
    assert not threads.is_valid_pid(b + 1)
    assert threads.get_state(b + 1) is None


def test_create_fails_when_table_full():
    threads = Threads()
    pids = [make(threads) for _ in range(THREADS_NUMOF)]
    assert sorted(pids) == list(range(THREADS_NUMOF))
    with pytest.raises(RuntimeError):
        make(threads)


def test_create_rejects_bad_priority_and_stack():
    threads = Threads(prio_levels=2)
    with pytest.raises(ValueError):
        make(threads, prio=2)
    with pytest.raises(ValueError):
        threads.create(noop, None, 0, 0)
    assert threads.get_state(0) is None


def test_start_threading_picks_highest_priority():
    threads = Threads()
    make(threads, prio=0)
    high = make(threads, prio=1)
    assert threads.current_pid() is None
    assert threads.start_threading() == high
    assert threads.current_pid() == high
    assert threads.current().pid == high
    with pytest.raises(RuntimeError):
        threads.start_threading()


def test_start_threading_without_threads_fails():
    with pytest.raises(RuntimeError):
        Threads().start_threading()


def test_sleep_and_wakeup():
    threads = Threads()
    a = make(threads)
    b = make(threads)
    threads.start_threading()
    assert threads.current_pid() == a
    threads.sleep()
    assert threads.current_pid() == b
    assert threads.get_state(a) == ThreadState.PAUSED
    assert threads.wakeup(a) is True
    assert threads.get_state(a) == ThreadState.RUNNING
    assert threads.wakeup(a) is False
    assert threads.wakeup(THREADS_NUMOF - 1) is False


def test_wakeup_of_higher_priority_preempts():
    threads = Threads()
    low = make(threads, prio=0)
    high = make(threads, prio=1)
    threads.start_threading()
    threads.sleep()
    assert threads.current_pid() == low
    threads.wakeup(high)
    assert threads.current_pid() == high


def test_yield_same_round_robin():
    threads = Threads()
    pids = [make(threads) for _ in range(3)]
    threads.start_threading()
    seen = []
    for _ in range(2 * len(pids)):
        seen.append(threads.current_pid())
        threads.yield_same()
    assert seen == pids + pids


def test_cleanup_frees_slot_for_reuse():
    threads = Threads()
    a = make(threads)
    b = make(threads)
    threads.start_threading()
    threads.cleanup()
    assert not threads.is_valid_pid(a)
    assert threads.current_pid() == b
    assert make(threads) == a


def test_idle_has_no_current_thread():
    threads = Threads()
    a = make(threads)
    threads.start_threading()
    threads.sleep()
    assert threads.current_pid() is None
    assert threads.current() is None
    with pytest.raises(RuntimeError):
        threads.flag_get()
    threads.wakeup(a)
    assert threads.current_pid() == a


def test_set_state_returns_previous_state():
    threads = Threads()
    a = make(threads)
    blocked = ThreadState.flag_blocked(WaitMode.any_of(1))
    assert threads.set_state(a, blocked) == ThreadState.RUNNING
    assert threads.get_state(a) == ThreadState.flag_blocked(WaitMode.any_of(1))
    assert threads.set_state(a, ThreadState.RUNNING) == blocked
    with pytest.raises(ValueError):
        threads.set_state(THREADS_NUMOF, ThreadState.RUNNING)


def test_flags_basic_scenario():
    threads = Threads()
    setter = make(threads, prio=0)
    w1 = make(threads, prio=1, arg=1)
    w2 = make(threads, prio=1, arg=2)
    w3 = make(threads, prio=1, arg=3)
    threads.start_threading()

    for waiter in (w1, w2, w3):
        assert threads.current_pid() == waiter
        assert threads.flag_wait_any(threads.current().arg) is None
        assert threads.get_state(waiter).kind is StateKind.FLAG_BLOCKED
    assert threads.current_pid() == setter

    threads.flag_set(w1, 1)
    assert threads.current_pid() == w1
    assert threads.flag_wait_any(1) == 1
    threads.cleanup()
    assert threads.current_pid() == setter

    threads.flag_set(w2, 1)
    assert threads.current_pid() == setter
    assert threads.get_state(w2) == ThreadState.flag_blocked(WaitMode.any_of(2))

    threads.flag_set(w3, 1)
    assert threads.current_pid() == w3
    assert threads.flag_wait_any(3) == 1
    assert threads.flag_get() == 0


def test_flag_wait_all_wakes_only_when_all_set():
    threads = Threads()
    main = make(threads, prio=0)
    waiter = make(threads, prio=1)
    low, high = 1, 4
    threads.start_threading()
    assert threads.flag_wait_all(low | high) is None
    assert threads.current_pid() == main
    threads.flag_set(waiter, low)
    assert threads.current_pid() == main
    threads.flag_set(waiter, high)
    assert threads.current_pid() == waiter
    assert threads.flag_wait_all(low | high) == low | high
    assert threads.flag_get() == 0


def test_flag_wait_one_takes_lowest_bit():
    threads = Threads()
    pid = make(threads)
    threads.start_threading()
    low, high = 2, 4
    threads.flag_set(pid, low | high)
    assert threads.flag_wait_one(low | high) == low
    assert threads.flag_get() == high
    assert threads.flag_wait_one(low | high) == high
    assert threads.flag_get() == 0


def test_flag_clear_returns_cleared_bits():
    threads = Threads()
    pid = make(threads)
    threads.start_threading()
    threads.flag_set(pid, 1 | 8)
    assert threads.flag_clear(8 | 16) == 8
    assert threads.flag_get() == 1


def test_flag_masks_are_sixteen_bits():
    threads = Threads()
    pid = make(threads)
    threads.start_threading()
    with pytest.raises(ValueError):
        threads.flag_set(pid, 0x10000)
    with pytest.raises(ValueError):
        threads.flag_wait_any(-1)


def test_wait_mode_satisfaction():
    assert WaitMode.any_of(6).is_satisfied(2)
    assert not WaitMode.all_of(6).is_satisfied(2)
    assert WaitMode.all_of(6).is_satisfied(7)


def test_thread_default_is_invalid():
    thread = Thread()
    assert thread.state == ThreadState.INVALID
    assert thread.flags == 0


def test_thread_list_is_lifo():
    threads = Threads()
    a = make(threads)
    b = make(threads)
    waiters = ThreadList()
    assert waiters.is_empty()
    assert waiters.pop(threads) is None
    threads.start_threading()

    waiters.put_current(threads, ThreadState.LOCK_BLOCKED)
    assert threads.current_pid() == b
    assert threads.get_state(a) == ThreadState.LOCK_BLOCKED
    waiters.put_current(threads, ThreadState.LOCK_BLOCKED)
    assert threads.current_pid() is None
    assert not waiters.is_empty()

    assert waiters.pop(threads) == (b, ThreadState.LOCK_BLOCKED)
    assert threads.current_pid() == b
    assert waiters.pop(threads) == (a, ThreadState.LOCK_BLOCKED)
    assert waiters.is_empty()
    assert threads.get_state(a) == ThreadState.RUNNING


def test_put_current_requires_current_thread():
    threads = Threads()
    with pytest.raises(RuntimeError):
        ThreadList().put_current(threads, ThreadState.LOCK_BLOCKED)