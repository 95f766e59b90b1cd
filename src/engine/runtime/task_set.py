"""
どこで: `engine.runtime` の最小単位。
何を: 名前と「タスクキー → コールバック」の表を持つ `TaskSet`。追加/削除/一括実行と、
      所有リストに対する生成（同名なら既存を返す）・名前検索・出現待ち・破棄を提供。
なぜ: IntervalTimer/FrameRunner が共通に埋め込む能力として、タスク表の扱いを一箇所に集めるため。

破棄後の扱い:
- `destroy()` 後のインスタンスは「死んだ」状態になり、以降の `add_task`/`remove_task`/
  `execute_tasks` は何もしない（DEBUG ログのみ）。変更系は従来どおり `self` を返す。
"""

from __future__ import annotations

import logging
import threading
from typing import Hashable

from ..core.tickable import TaskCallback
from .dispatch import TaskDispatcher
from .entity_list import EntityList

logger = logging.getLogger(__name__)

# dispatcher 未指定時に使う決定的な実行器（呼び出しスレッドで逐次・例外は隔離）
_INLINE_DISPATCHER = TaskDispatcher(max_workers=0)


class TaskSet:
    """名前付きのタスク表。"""

    def __init__(self, name: str, dispatcher: TaskDispatcher | None = None) -> None:
        self._name = str(name)
        self._tasks: dict[Hashable, TaskCallback] = {}
        self._lock = threading.Lock()
        self._dispatcher = dispatcher if dispatcher is not None else _INLINE_DISPATCHER
        self._alive = True

    # ---- 生成/検索（所有リストに対する操作） ----
    @classmethod
    def create(
        cls,
        name: str,
        owner: EntityList["TaskSet"],
        dispatcher: TaskDispatcher | None = None,
    ) -> "TaskSet":
        """同名が `owner` に居ればそれを返し、居なければ新規作成して追加する。"""
        entity, _ = owner.get_or_create(name, lambda: cls(name, dispatcher))
        return entity

    @staticmethod
    def find_by_name(name: str, owner: EntityList) -> object | None:
        return owner.find_by_name(name)

    @staticmethod
    def wait_for_named(name: str, owner: EntityList, timeout: float) -> object | None:
        return owner.wait_for(name, timeout)

    # ---- 属性 ----
    @property
    def name(self) -> str:
        return self._name

    @property
    def alive(self) -> bool:
        return self._alive

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def __repr__(self) -> str:
        state = "" if self._alive else ", dead"
        return f"{type(self).__name__}({self._name!r}, tasks={len(self)}{state})"

    def has_task(self, key: Hashable) -> bool:
        with self._lock:
            return key in self._tasks

    def task_keys(self) -> list[Hashable]:
        with self._lock:
            return list(self._tasks)

    # ---- タスク表の変更 ----
    def add_task(self, key: Hashable, callback: TaskCallback) -> "TaskSet":
        """`key` にコールバックを登録（既存は上書き）。連鎖呼び出し用に self を返す。"""
        if not self._alive:
            logger.debug("add_task on destroyed %r ignored", self._name)
            return self
        if not callable(callback):
            raise TypeError(f"callback must be callable: got {callback!r}")
        with self._lock:
            self._tasks[key] = callback
        return self

    def remove_task(self, key: Hashable) -> "TaskSet":
        """`key` を削除（未登録なら何もしない）。"""
        if not self._alive:
            logger.debug("remove_task on destroyed %r ignored", self._name)
            return self
        with self._lock:
            self._tasks.pop(key, None)
        return self

    # ---- 実行 ----
    def execute_tasks(self, dt: float) -> None:
        """登録済みの全コールバックを `callback(dt)` で 1 単位ずつ投入する。

        表はスナップショットを走査するため、実行中のタスクから add/remove しても安全。
        """
        if not self._alive:
            return
        with self._lock:
            items = list(self._tasks.items())
        for key, callback in items:
            self._dispatcher.submit(f"{self._name}:{key!r}", callback, dt)

    # ---- 破棄 ----
    def destroy(self, owner: EntityList | None = None) -> None:
        """所有リストから外し、以降の呼び出しを無効化する。"""
        if owner is not None:
            owner.remove(self)
        self._alive = False
        with self._lock:
            self._tasks.clear()


__all__ = ["TaskSet"]
