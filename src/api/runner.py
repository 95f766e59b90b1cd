"""
どこで: `api.runner`（起動/結線ランナー）。
何を: 設定から既定の IntervalTimer/FrameRunner を事前登録し、`pyglet` のハートビート
      （`pyglet.clock.schedule_interval`）とフレーム同期（ウィンドウの `on_draw`）を
      `TaskRegistry` の tick 入口へ 1 度だけ結線する `TaskRunner` を提供。
なぜ: レジストリ本体をドライバ非依存に保ちつつ、ゲームループ側の初期化手順を 1 か所に集めるため。

実行フロー（概要）:
1) 設定解決: `config is None` の場合は `util.utils.load_config()` の `task_runner` 節を使う。
2) 事前登録: `schedules`（name → {tick}）を IntervalTimer として登録。
   `renders` はウィンドウ（表示コンテキスト）がある場合のみ FrameRunner として登録。
3) ハートビート: `pyglet.clock.schedule_interval(registry.on_heartbeat, 1 / heartbeat_hz)`。
4) フレーム同期: ウィンドウがあれば `on_draw` ハンドラを push し、`FrameClock` で dt を測って
   `registry.on_frame(dt)` を呼ぶ。

スレッド/プロセス・安全性:
- `start()` はランナーごとに 1 回のみ。2 回目は RuntimeError。
- `pyglet` は遅延 import。`pyglet_mod` を注入すればヘッドレスでも結線を検証できる。

例:
    registry = TaskRegistry()
    runner = TaskRunner(registry, window=window)
    runner.start()
    registry.new_interval_timer("autosave", 30.0).add_task("save", lambda dt: save())
    pyglet.app.run()
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from common import settings as settings_mod
from common.logging import setup_default_logging
from engine.core.frame_clock import FrameClock
from engine.runtime.registry import TaskRegistry
from util.utils import load_config, task_runner_section

logger = logging.getLogger(__name__)


def resolve_heartbeat_hz(heartbeat_hz: float | None, section: Mapping[str, Any]) -> float:
    """引数 → 設定 `heartbeat_hz` → 環境設定 の順にハートビート周波数を解決する。"""
    if heartbeat_hz is not None:
        candidates: list[Any] = [heartbeat_hz]
    else:
        candidates = [section.get("heartbeat_hz")]
    for raw in candidates:
        if raw is None:
            continue
        try:
            hz = float(raw)
        except (TypeError, ValueError):
            logger.warning("invalid heartbeat_hz %r; falling back to settings", raw)
            continue
        if hz > 0:
            return hz
        logger.warning("non-positive heartbeat_hz %r; falling back to settings", raw)
    return float(settings_mod.get().HEARTBEAT_HZ)


def _iter_schedule_configs(raw: object):
    if raw is None:
        return
    if not isinstance(raw, Mapping):
        logger.warning("task_runner.schedules must be a mapping: got %r", type(raw).__name__)
        return
    for name, entry in raw.items():
        if not isinstance(entry, Mapping):
            logger.warning("schedule %r: config must be a mapping with 'tick'; skipped", name)
            continue
        try:
            tick = float(entry["tick"])
        except (KeyError, TypeError, ValueError):
            logger.warning("schedule %r: missing or invalid 'tick'; skipped", name)
            continue
        if tick <= 0:
            logger.warning("schedule %r: tick must be positive (got %s); skipped", name, tick)
            continue
        yield str(name), tick


def _iter_render_names(raw: object):
    # list/tuple の名前列、または名前をキーとする mapping を受け付ける
    if raw is None:
        return
    if isinstance(raw, Mapping):
        names = list(raw.keys())
    elif isinstance(raw, (list, tuple, set)):
        names = list(raw)
    else:
        logger.warning("task_runner.renders must be a list or mapping: got %r", type(raw).__name__)
        return
    for name in names:
        yield str(name)


class TaskRunner:
    """TaskRegistry を pyglet のドライバへ結線する起動役。"""

    def __init__(
        self,
        registry: TaskRegistry | None = None,
        *,
        config: Mapping[str, Any] | None = None,
        window: Any | None = None,
        pyglet_mod: Any | None = None,
        heartbeat_hz: float | None = None,
    ) -> None:
        """ランナーを生成する（結線は `start()` まで行わない）。

        引数:
            registry: 結線対象。省略時は新規 `TaskRegistry()`。
            config: `load_config()` 形式の辞書。省略時はファイルから読む。
            window: `pyglet.window.Window` 互換（`push_handlers`/`remove_handlers`）。
                None ならサーバ相当とみなし、フレーム同期と renders は扱わない。
            pyglet_mod: テスト用の差し替え（`clock.schedule_interval`/`clock.unschedule`）。
            heartbeat_hz: ハートビート周波数 [Hz]。
        """
        self.registry = registry if registry is not None else TaskRegistry()
        self._config = config
        self._window = window
        self._pyglet = pyglet_mod
        self._heartbeat_hz_arg = heartbeat_hz
        self._heartbeat_hz: float | None = None
        self._frame_clock: FrameClock | None = None
        self._started = False
        self._stopped = False

    @property
    def started(self) -> bool:
        return self._started

    @property
    def has_display(self) -> bool:
        return self._window is not None

    @property
    def heartbeat_hz(self) -> float | None:
        return self._heartbeat_hz

    def _resolve_pyglet(self) -> Any:
        if self._pyglet is None:
            # 遅延 import（ウィンドウを作らない経路では重い初期化を避ける）
            import pyglet

            self._pyglet = pyglet
        return self._pyglet

    # ---- lifecycle ----
    def start(self) -> TaskRegistry:
        """事前登録とドライバ結線を行う。同一ランナーで 2 回呼ぶと RuntimeError。"""
        if self._started:
            raise RuntimeError("TaskRunner.start() called twice")
        self._started = True
        setup_default_logging(settings_mod.get().LOG_LEVEL)

        cfg = self._config if self._config is not None else load_config()
        section = task_runner_section(cfg)

        for name, tick in _iter_schedule_configs(section.get("schedules")):
            self.registry.new_interval_timer(name, tick)
            logger.debug("pre-registered interval timer %r (tick=%s)", name, tick)

        if self.has_display:
            for name in _iter_render_names(section.get("renders")):
                self.registry.new_frame_runner(name)
                logger.debug("pre-registered frame runner %r", name)

        pyglet_mod = self._resolve_pyglet()
        self._heartbeat_hz = resolve_heartbeat_hz(self._heartbeat_hz_arg, section)
        pyglet_mod.clock.schedule_interval(self.registry.on_heartbeat, 1.0 / self._heartbeat_hz)

        if self.has_display:
            self._frame_clock = FrameClock([self.registry.on_frame])
            self._window.push_handlers(on_draw=self._on_draw)

        logger.info(
            "task runner started: heartbeat=%.1fHz display=%s %r",
            self._heartbeat_hz,
            self.has_display,
            self.registry,
        )
        return self.registry

    def _on_draw(self, dt: float | None = None) -> None:  # Pyglet 既定のイベント名
        # 下位ハンドラ（ウィンドウ自身の描画）へ伝搬させるため None を返す
        if self._frame_clock is not None:
            self._frame_clock.tick(dt)

    def stop(self) -> None:
        """ドライバを外し、ディスパッチャを停止する（多重呼び出しに安全）。"""
        if not self._started or self._stopped:
            return
        self._stopped = True
        try:
            self._resolve_pyglet().clock.unschedule(self.registry.on_heartbeat)
        except Exception:
            logger.exception("failed to unschedule heartbeat")
        if self._window is not None and self._frame_clock is not None:
            try:
                self._window.remove_handlers(on_draw=self._on_draw)
            except Exception:
                logger.exception("failed to remove on_draw handler")
        self._frame_clock = None
        self.registry.close()
        logger.info("task runner stopped")

    def run(self) -> None:
        """`start()` → `pyglet.app.run()` → `stop()` を一括で行う。"""
        self.start()
        try:
            self._resolve_pyglet().app.run()
        finally:
            self.stop()


__all__ = ["TaskRunner", "resolve_heartbeat_hz"]
