"""
どこで: `engine.runtime` の周期タイマ。
何を: `TaskSet` を内包し、tick ごとの dt を積算して `period` に達したら 1 回だけ発火する
      `IntervalTimer`（旧称 schedule）。
なぜ: 各サブシステムが個別にタイマを持たずに「N 秒ごと」の処理を登録できるようにするため。

発火規則:
- `elapsed += dt` → `elapsed < period` なら何もしない → それ以外は `elapsed = 0` にして
  `execute_tasks(dt)`。コールバックへ渡るのは積算値ではなくその tick の dt。
- 1 回の `update` で period を何倍超えても発火は 1 回（取りこぼし分の再実行はしない）。
- 負の dt は無視する。
"""

from __future__ import annotations

import logging
import threading
from typing import Hashable

from ..core.tickable import TaskCallback
from .dispatch import TaskDispatcher
from .entity_list import EntityList
from .task_set import TaskSet

logger = logging.getLogger(__name__)


class IntervalTimer:
    """周期 `period` [sec] ごとに登録タスクを実行するエンティティ。"""

    def __init__(
        self, name: str, period: float, dispatcher: TaskDispatcher | None = None
    ) -> None:
        period = float(period)
        if not period > 0:
            raise ValueError(f"period must be positive: got {period!r}")
        self._tasks = TaskSet(name, dispatcher)
        self._period = period
        self._elapsed = 0.0
        # 積算→比較→リセットを 1 エンティティ内で原子的にする
        self._update_lock = threading.Lock()

    @classmethod
    def create(
        cls,
        name: str,
        period: float,
        owner: EntityList["IntervalTimer"],
        dispatcher: TaskDispatcher | None = None,
    ) -> "IntervalTimer":
        """同名が居ればそれを返す（period は更新しない）。居なければ新規作成して追加。"""
        timer, created = owner.get_or_create(name, lambda: cls(name, period, dispatcher))
        if not created and timer.period != float(period):
            logger.debug(
                "interval timer %r already exists (period=%s); requested %s ignored",
                name,
                timer.period,
                period,
            )
        return timer

    # ---- TaskHolder ----
    @property
    def name(self) -> str:
        return self._tasks.name

    def add_task(self, key: Hashable, callback: TaskCallback) -> "IntervalTimer":
        self._tasks.add_task(key, callback)
        return self

    def remove_task(self, key: Hashable) -> "IntervalTimer":
        self._tasks.remove_task(key)
        return self

    def execute_tasks(self, dt: float) -> None:
        self._tasks.execute_tasks(dt)

    def has_task(self, key: Hashable) -> bool:
        return self._tasks.has_task(key)

    def task_keys(self) -> list[Hashable]:
        return self._tasks.task_keys()

    # ---- 状態 ----
    @property
    def period(self) -> float:
        return self._period

    @property
    def elapsed(self) -> float:
        return self._elapsed

    @property
    def alive(self) -> bool:
        return self._tasks.alive

    def __repr__(self) -> str:
        return (
            f"IntervalTimer({self.name!r}, period={self._period}, "
            f"elapsed={self._elapsed:.4f}, tasks={len(self._tasks)})"
        )

    # ---- 駆動 ----
    def update(self, dt: float) -> bool:
        """経過時間 dt を積算し、period に達していれば発火する。

        Returns
        -------
        bool
            この呼び出しで発火したら True。
        """
        if not self._tasks.alive:
            return False
        if not dt >= 0:  # 負値/NaN は積算しない（elapsed は常に非負）
            logger.debug("interval timer %r: ignoring invalid dt %r", self.name, dt)
            return False
        with self._update_lock:
            self._elapsed += dt
            if self._elapsed < self._period:
                return False
            self._elapsed = 0.0
        self._tasks.execute_tasks(dt)
        return True

    def destroy(self, owner: EntityList | None = None) -> None:
        if owner is not None:
            owner.remove(self)
        self._tasks.destroy()


__all__ = ["IntervalTimer"]
