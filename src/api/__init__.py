"""
どこで: `api` 入口（高レベル公開 API）。
何を: `TaskRunner`・`TaskRegistry`・`IntervalTimer`・`FrameRunner`・`TaskSet` などを再輸出。
なぜ: 利用者が単一名前空間から登録→結線→実行まで完結できるようにするため。

Usage:
    from api import TaskRegistry, TaskRunner

    registry = TaskRegistry()
    TaskRunner(registry, window=window).start()

    (registry.new_interval_timer("ai", 0.25)
        .add_task("think", brain.think)
        .add_task("path", pathing.update))
    registry.new_frame_runner("camera").add_task("follow", camera.follow)
"""

from engine.core.tickable import TaskHolder
from engine.runtime.dispatch import TaskCallbackError, TaskDispatcher
from engine.runtime.entity_list import EntityList
from engine.runtime.frame_runner import FrameRunner
from engine.runtime.interval import IntervalTimer
from engine.runtime.registry import TaskRegistry
from engine.runtime.task_set import TaskSet

from .runner import TaskRunner, resolve_heartbeat_hz

__all__ = [
    # メインAPI
    "TaskRegistry",
    "TaskRunner",
    # エンティティ
    "IntervalTimer",
    "FrameRunner",
    "TaskSet",
    "EntityList",
    # 実行/能力
    "TaskDispatcher",
    "TaskCallbackError",
    "TaskHolder",
    "resolve_heartbeat_hz",
]

# バージョン情報
__version__ = "2026.10"
