import threading

import pytest

from ellyn.routine import (
    RoutineLocal,
    RoutinePool,
    get_routine_ctx,
    get_routine_id,
    set_routine_ctx,
)


def test_routine_local_basic():
    local = RoutineLocal()
    local.set(1)
    assert local.is_set()
    assert local.get() == 1
    alias = local
    alias.set(2)
    assert local.get() == 2
    local.clear()
    assert not local.is_set()
    assert local.get() is None
    assert local.get(-1) == -1
    local.set(4)
    assert local.get() == 4


def test_routine_local_more_instances():
    user_id = RoutineLocal()
    set_id = RoutineLocal()
    session_key = RoutineLocal()
    user_id.set(12345)
    set_id.set(1)
    session_key.set("test01")
    assert user_id.get() == 12345
    assert set_id.get() == 1
    assert session_key.get() == "test01"


def test_routine_local_concurrent():
    local = RoutineLocal()
    local.set(1)
    seen = {}

    def worker():
        seen["before"] = local.is_set()
        local.set(100)
        seen["after"] = local.get()

    t = threading.Thread(target=worker)
    t.start()
    t.join()
    assert seen == {"before": False, "after": 100}
    assert local.get() == 1


def test_routine_ctx_is_per_thread():
    set_routine_ctx("main-ctx")
    seen = {}

    def worker():
        seen["ctx"] = get_routine_ctx()
        seen["id"] = get_routine_id()

    t = threading.Thread(target=worker)
    t.start()
    t.join()
    assert get_routine_ctx() == "main-ctx"
    assert seen["ctx"] is None
    assert seen["id"] != get_routine_id()
    set_routine_ctx(None)
    assert get_routine_ctx() is None


def test_routine_pool():
    cnt = 100
    done = threading.Semaphore(0)
    lock = threading.Lock()
    results = []
    pool = RoutinePool(10, True)

    def make_task(i):
        def task():
            with lock:
                results.append(i)
            done.release()

        return task

    for i in range(cnt):
        pool.submit(make_task(i))
    for _ in range(cnt):
        assert done.acquire(timeout=10)
    pool.shutdown()
    assert sorted(results) == list(range(cnt))
    with pytest.raises(RuntimeError):
        pool.submit(make_task(cnt))


def test_routine_pool_survives_failing_task():
    finished = threading.Event()
    with RoutinePool(1, True) as pool:
        pool.submit(lambda: 1 / 0)
        pool.submit(finished.set)
        assert finished.wait(timeout=10)


def test_submit_after_shutdown_raises():
    pool = RoutinePool(2)
    pool.shutdown()
    with pytest.raises(RuntimeError):
        pool.submit(lambda: None)


def test_invalid_routine_num():
    with pytest.raises(ValueError):
        RoutinePool(0)