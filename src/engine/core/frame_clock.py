"""
どこで: `engine.core` の簡易フレームドライバ。
何を: 登録されたターゲット `fn(dt)` を固定順序で呼び出す FrameClock（dt 測定とループ管理）。
なぜ: dt を渡さないイベント（pyglet の `on_draw` 等）からも一定の形で tick を届けるため。
"""

from __future__ import annotations

import time
from typing import Callable, Sequence


class FrameClock:
    """登録されたターゲットを固定順序で実行するだけの極小クラス。"""

    def __init__(self, targets: Sequence[Callable[[float], None]]):
        self._targets = tuple(targets)
        self._last_time = time.perf_counter()

    # GUI フレームワークから schedule_interval / on_draw で呼ばせる
    def tick(self, dt: float | None = None) -> None:
        now = time.perf_counter()
        if dt is None:  # pyglet.clock は dt を渡してくれる
            dt = now - self._last_time  # on_draw 用
        self._last_time = now

        for fn in self._targets:
            fn(dt)
