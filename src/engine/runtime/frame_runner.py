"""
どこで: `engine.runtime` の毎フレーム実行器。
何を: `TaskSet` を内包し、フレーム tick のたびに無条件で全タスクを実行する `FrameRunner`（旧称 render）。
なぜ: 描画フレームに同期した処理（カメラ追従/補間など）を購読管理なしで登録できるようにするため。
"""

from __future__ import annotations

from typing import Hashable

from ..core.tickable import TaskCallback
from .dispatch import TaskDispatcher
from .entity_list import EntityList
from .task_set import TaskSet


class FrameRunner:
    """タイミング判定を持たないエンティティ。"""

    def __init__(self, name: str, dispatcher: TaskDispatcher | None = None) -> None:
        self._tasks = TaskSet(name, dispatcher)

    @classmethod
    def create(
        cls,
        name: str,
        owner: EntityList["FrameRunner"],
        dispatcher: TaskDispatcher | None = None,
    ) -> "FrameRunner":
        runner, _ = owner.get_or_create(name, lambda: cls(name, dispatcher))
        return runner

    @property
    def name(self) -> str:
        return self._tasks.name

    @property
    def alive(self) -> bool:
        return self._tasks.alive

    def add_task(self, key: Hashable, callback: TaskCallback) -> "FrameRunner":
        self._tasks.add_task(key, callback)
        return self

    def remove_task(self, key: Hashable) -> "FrameRunner":
        self._tasks.remove_task(key)
        return self

    def has_task(self, key: Hashable) -> bool:
        return self._tasks.has_task(key)

    def task_keys(self) -> list[Hashable]:
        return self._tasks.task_keys()

    def execute_tasks(self, dt: float) -> None:
        self._tasks.execute_tasks(dt)

    def destroy(self, owner: EntityList | None = None) -> None:
        if owner is not None:
            owner.remove(self)
        self._tasks.destroy()

    def __repr__(self) -> str:
        return f"FrameRunner({self.name!r}, tasks={len(self._tasks)})"


__all__ = ["FrameRunner"]
