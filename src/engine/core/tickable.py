"""
どこで: `engine.core` の能力インターフェース。
何を: タスク保持能力 `TaskHolder`（name/add_task/remove_task/execute_tasks）の Protocol を定義。
なぜ: IntervalTimer/FrameRunner を継承ではなく共通の小さな能力として一様に扱うため。
"""

from __future__ import annotations

from typing import Callable, Hashable, Protocol, runtime_checkable

TaskCallback = Callable[[float], object]


@runtime_checkable
class TaskHolder(Protocol):
    """名前付きのタスク表を持ち、一括実行できるオブジェクト。"""

    @property
    def name(self) -> str: ...

    def add_task(self, key: Hashable, callback: TaskCallback) -> "TaskHolder": ...

    def remove_task(self, key: Hashable) -> "TaskHolder": ...

    def execute_tasks(self, dt: float) -> None: ...
