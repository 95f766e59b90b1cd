"""共通フィクスチャ。

- インライン実行（max_workers=0）の TaskRegistry: tick の結果を同期的に検証できる
- タスク例外の通知を集める errors リスト
- 呼び出し dt を記録する Recorder
"""

from __future__ import annotations

from typing import Callable, Iterator

import pytest

from engine.runtime.dispatch import TaskCallbackError, TaskDispatcher
from engine.runtime.registry import TaskRegistry


class Recorder:
    """呼び出し引数 dt を記録するコールバック。"""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, dt: float) -> None:
        self.calls.append(dt)

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture()
def make_recorder() -> Callable[[], Recorder]:
    return Recorder


@pytest.fixture()
def errors() -> list[tuple[str, TaskCallbackError]]:
    return []


@pytest.fixture()
def inline_dispatcher(errors: list[tuple[str, TaskCallbackError]]) -> Iterator[TaskDispatcher]:
    d = TaskDispatcher(max_workers=0, on_error=lambda label, err: errors.append((label, err)))
    yield d
    d.close()


@pytest.fixture()
def registry(inline_dispatcher: TaskDispatcher) -> Iterator[TaskRegistry]:
    reg = TaskRegistry(inline_dispatcher, wait_poll_interval=0.01)
    yield reg
    reg.close()
