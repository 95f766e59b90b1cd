from __future__ import annotations

import threading
import time

import pytest

from engine.runtime.dispatch import TaskCallbackError, TaskDispatcher
from engine.runtime.registry import TaskRegistry


def _wait_until(pred, timeout: float = 2.0) -> bool:
    start = time.time()
    while time.time() - start < timeout:
        if pred():
            return True
        time.sleep(0.005)
    return pred()


def test_inline_dispatcher_runs_on_caller_thread() -> None:
    d = TaskDispatcher(max_workers=0)
    seen: list[str] = []
    d.submit("inline", lambda: seen.append(threading.current_thread().name))
    assert d.inline
    assert seen == [threading.current_thread().name]


def test_failing_error_hook_is_swallowed() -> None:
    def bad_hook(_label: str, _err: TaskCallbackError) -> None:
        raise RuntimeError("hook failed")

    d = TaskDispatcher(max_workers=0, on_error=bad_hook)
    d.submit("x", lambda: 1 / 0)  # 呼び出し元へは何も伝搬しない


@pytest.mark.integration
def test_pool_dispatch_is_fire_and_forget() -> None:
    release = threading.Event()
    finished = threading.Event()
    d = TaskDispatcher(max_workers=2)
    try:

        def slow() -> None:
            release.wait(2.0)
            finished.set()

        start = time.time()
        d.submit("slow", slow)
        # submit は完了を待たない
        assert time.time() - start < 0.5
        assert not finished.is_set()
        release.set()
        assert _wait_until(finished.is_set)
    finally:
        d.close(wait=True)


@pytest.mark.integration
def test_stalled_entity_does_not_block_next_heartbeat() -> None:
    errors: list[str] = []
    reg = TaskRegistry(max_workers=4, on_error=lambda label, _err: errors.append(label))
    release = threading.Event()
    counts = {"fast": 0}
    lock = threading.Lock()
    try:

        def stall(_dt: float) -> None:
            release.wait(2.0)

        def fast(_dt: float) -> None:
            with lock:
                counts["fast"] += 1

        def boom(_dt: float) -> None:
            raise RuntimeError("boom")

        reg.new_interval_timer("stalled", 0.01).add_task("stall", stall)
        reg.new_interval_timer("fast", 0.01).add_task("fast", fast).add_task("boom", boom)

        reg.on_heartbeat(0.02)
        assert _wait_until(lambda: counts["fast"] >= 1)
        reg.on_heartbeat(0.02)
        assert _wait_until(lambda: counts["fast"] >= 2)
        assert _wait_until(lambda: len(errors) >= 2)
    finally:
        release.set()
        reg.close()


@pytest.mark.integration
def test_waiting_callbacks_do_not_starve_other_entities() -> None:
    reg = TaskRegistry(max_workers=4, task_workers=16)
    fired = threading.Event()
    waited: list[object] = []
    lock = threading.Lock()
    try:

        def wait_forever(_dt: float) -> None:
            found = reg.wait_for_frame_runner("never", 1.5)
            with lock:
                waited.append(found)

        # tick 用スレッド数と同じ数だけ待ち続けるコールバックを用意する
        for i in range(4):
            reg.new_interval_timer(f"waiter{i}", 0.01).add_task("wait", wait_forever)
        # 2 回目の heartbeat で初めて発火する
        reg.new_interval_timer("healthy", 0.03).add_task("set", lambda _dt: fired.set())

        reg.on_heartbeat(0.02)
        reg.on_heartbeat(0.02)
        assert fired.wait(1.0)
        assert reg.task_dispatcher is not reg.dispatcher
    finally:
        reg.new_frame_runner("never")  # 待機中のコールバックを解放する
        reg.close()


@pytest.mark.integration
def test_callback_can_wait_for_entity_created_by_sibling_timer() -> None:
    reg = TaskRegistry(max_workers=2, task_workers=8)
    found: list[object] = []
    lock = threading.Lock()
    try:

        def wait_for_late(_dt: float) -> None:
            runner = reg.wait_for_frame_runner("late", 2.0)
            with lock:
                found.append(runner)

        for i in range(3):
            reg.new_interval_timer(f"consumer{i}", 0.01).add_task("wait", wait_for_late)
        reg.new_interval_timer("producer", 0.03).add_task(
            "create", lambda _dt: reg.new_frame_runner("late")
        )

        reg.on_heartbeat(0.02)
        reg.on_heartbeat(0.02)  # producer はこちらで発火
        assert _wait_until(lambda: len(found) == 6)  # 3 体 x 2 回
        late = reg.get_frame_runner("late")
        assert late is not None
        assert all(r is late for r in found)
    finally:
        reg.close()
