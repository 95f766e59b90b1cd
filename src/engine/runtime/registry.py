"""
どこで: `engine.runtime` のレジストリ層。
何を: IntervalTimer/FrameRunner の名前付き集合（生成または取得/検索/出現待ち/一覧/破棄）と、
      2 系統の tick 入口 `on_heartbeat(dt)` / `on_frame(dt)` を提供。
なぜ: エンティティの所有と tick の扇状展開を 1 か所にまとめ、各サブシステムが
      個別のタイマ/フレーム購読を持たずに済むようにするため。

構造:
- 生存リスト（`EntityList`）が tick で走査される正本。名前索引（dict）は利便用。
- 索引の値は常に対応する生存リストにも居る（生成/破棄の 1 操作の内側を除く）。
- tick はリストのスナップショットを 1 エンティティ 1 単位として tick 用ディスパッチャへ投入する。
  tick 途中に生成されたエンティティは次の tick から確実に対象になる。
- タスクコールバックはエンティティ経由でコールバック用ディスパッチャへ投入される（2 プール構成）。

公開 API 概要:
- `new_interval_timer(name, period)` / `new_frame_runner(name)`
- `get_*` / `has_*` / `wait_for_*` / `all_*`
- `destroy(entity)` / `close()`
"""

from __future__ import annotations

import logging
import threading
from typing import Union

from common import settings as settings_mod

from .dispatch import ErrorHook, TaskDispatcher
from .entity_list import EntityList
from .frame_runner import FrameRunner
from .interval import IntervalTimer

logger = logging.getLogger(__name__)

Entity = Union[IntervalTimer, FrameRunner]


class TaskRegistry:
    """プロセス内で 1 つ明示的に生成し、必要な箇所へ渡して使うレジストリ。"""

    def __init__(
        self,
        dispatcher: TaskDispatcher | None = None,
        *,
        task_dispatcher: TaskDispatcher | None = None,
        max_workers: int | None = None,
        task_workers: int | None = None,
        on_error: ErrorHook | None = None,
        wait_poll_interval: float | None = None,
    ) -> None:
        """レジストリを生成する。

        エンティティの tick（`update`/`execute_tasks` の呼び出し）とタスクコールバック本体は
        別々のプールで実行する。tick 単位はコールバックを投入するだけで待たないため、
        コールバックが `wait_for_*` 等で止まっても他エンティティの tick は遅れない。
        ただしコールバック用プールが全て塞がると、後続コールバックはキューで待つ
        （`task_workers` が同時に止まってよいコールバック数の上限）。

        引数:
            dispatcher: tick 用ディスパッチャ。省略時は `max_workers` から生成。
            task_dispatcher: コールバック用。省略時は `dispatcher` 指定があればそれを共有し、
                無ければ `task_workers` から生成。
            max_workers: 省略時は `common.settings` の `MAX_WORKERS`（0 でインライン）。
            task_workers: 省略時は `common.settings` の `TASK_WORKERS`（0 でインライン）。
            on_error: 例外の通知先（自前で生成するディスパッチャにのみ使用）。
            wait_poll_interval: `wait_for_*` の再確認間隔 [sec]。
        """
        cfg = settings_mod.get()
        if task_dispatcher is None and dispatcher is not None:
            task_dispatcher = dispatcher
        if dispatcher is None:
            workers = cfg.MAX_WORKERS if max_workers is None else int(max_workers)
            dispatcher = TaskDispatcher(
                max_workers=workers, on_error=on_error, thread_name_prefix="tick-entity"
            )
        if task_dispatcher is None:
            workers = cfg.TASK_WORKERS if task_workers is None else int(task_workers)
            task_dispatcher = TaskDispatcher(
                max_workers=workers, on_error=on_error, thread_name_prefix="tick-task"
            )
        self._dispatcher = dispatcher
        self._task_dispatcher = task_dispatcher
        poll = cfg.WAIT_POLL_INTERVAL if wait_poll_interval is None else wait_poll_interval

        self._intervals: EntityList[IntervalTimer] = EntityList(poll_interval=poll)
        self._frames: EntityList[FrameRunner] = EntityList(poll_interval=poll)
        self._interval_index: dict[str, IntervalTimer] = {}
        self._frame_index: dict[str, FrameRunner] = {}
        self._lock = threading.RLock()

    @property
    def dispatcher(self) -> TaskDispatcher:
        return self._dispatcher

    @property
    def task_dispatcher(self) -> TaskDispatcher:
        return self._task_dispatcher

    # ---- IntervalTimer ----
    def new_interval_timer(self, name: str, period: float) -> IntervalTimer:
        """同名があれば既存を返し（period は据え置き）、索引を name で上書きする。"""
        with self._lock:
            timer = IntervalTimer.create(name, period, self._intervals, self._task_dispatcher)
            self._interval_index[name] = timer
        return timer

    def get_interval_timer(self, name: str) -> IntervalTimer | None:
        with self._lock:
            found = self._interval_index.get(name)
        return found if found is not None else self._intervals.find_by_name(name)

    def has_interval_timer(self, name: str) -> bool:
        with self._lock:
            return name in self._interval_index

    def wait_for_interval_timer(self, name: str, timeout: float) -> IntervalTimer | None:
        return self._intervals.wait_for(name, timeout)

    def all_interval_timers(self) -> dict[str, IntervalTimer]:
        """名前索引のコピー（呼び出し側で変更してもレジストリに影響しない）。"""
        with self._lock:
            return dict(self._interval_index)

    # ---- FrameRunner ----
    def new_frame_runner(self, name: str) -> FrameRunner:
        with self._lock:
            runner = FrameRunner.create(name, self._frames, self._task_dispatcher)
            self._frame_index[name] = runner
        return runner

    def get_frame_runner(self, name: str) -> FrameRunner | None:
        with self._lock:
            found = self._frame_index.get(name)
        return found if found is not None else self._frames.find_by_name(name)

    def has_frame_runner(self, name: str) -> bool:
        with self._lock:
            return name in self._frame_index

    def wait_for_frame_runner(self, name: str, timeout: float) -> FrameRunner | None:
        return self._frames.wait_for(name, timeout)

    def all_frame_runners(self) -> dict[str, FrameRunner]:
        with self._lock:
            return dict(self._frame_index)

    # ---- 破棄 ----
    def destroy(self, entity: Entity) -> None:
        """周期タイマ → フレーム実行器の順に所属を調べて取り除く。どちらでもなければ何もしない。"""
        with self._lock:
            if self._intervals.remove(entity):  # type: ignore[arg-type]
                _drop_by_value(self._interval_index, entity)
            elif self._frames.remove(entity):  # type: ignore[arg-type]
                _drop_by_value(self._frame_index, entity)
            else:
                logger.debug("destroy: %r is not registered", entity)
                return
        entity.destroy()
        logger.debug("destroyed %r", entity)

    # ---- tick 入口 ----
    def on_heartbeat(self, dt: float) -> None:
        """生存中の全 IntervalTimer に `update(dt)` を 1 単位ずつ投入する。"""
        for timer in self._intervals.snapshot():
            self._dispatcher.submit(f"interval:{timer.name}", timer.update, dt)

    def on_frame(self, dt: float) -> None:
        """生存中の全 FrameRunner に `execute_tasks(dt)` を 1 単位ずつ投入する。"""
        for runner in self._frames.snapshot():
            self._dispatcher.submit(f"frame:{runner.name}", runner.execute_tasks, dt)

    def close(self) -> None:
        """tick 用/コールバック用のディスパッチャを停止する（多重呼び出しに安全）。"""
        self._dispatcher.close()
        if self._task_dispatcher is not self._dispatcher:
            self._task_dispatcher.close()

    def __repr__(self) -> str:
        return (
            f"TaskRegistry(intervals={len(self._intervals)}, frames={len(self._frames)}, "
            f"inline={self._dispatcher.inline})"
        )


def _drop_by_value(index: dict[str, Entity], entity: Entity) -> None:
    # 索引名とエンティティ名の不一致に備え、値で探す
    for key, value in list(index.items()):
        if value is entity:
            del index[key]
            break


__all__ = ["TaskRegistry", "Entity"]
