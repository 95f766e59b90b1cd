"""
どこで: `engine.runtime` のディスパッチ層。
何を: 1 単位の仕事（エンティティの tick / タスクコールバック）をスレッドプール（またはインライン）へ
      投げっぱなしで渡し、例外は単位ごとに捕捉して `logger.exception` と `on_error` で通知する。
      `close()` は安全に停止する（多重呼び出し可）。
なぜ: 1 つの壊れたタスクが tick ドライバや兄弟タスクを止めないようにしつつ、
      スレッド数を上限付きに保つため。

注意:
- `max_workers < 1` のときは呼び出しスレッドで即時実行する（テスト/ヘッドレス向けの決定的モード）。
- 投入した仕事の完了は待たない。tick N の仕事が残っていても tick N+1 の投入は進む。
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Any, Callable

logger = logging.getLogger(__name__)

ErrorHook = Callable[[str, "TaskCallbackError"], None]


class TaskCallbackError(Exception):
    """タスク実行中の例外をラップしてラベル（どの仕事か）の文脈を付与。"""

    def __init__(self, label: str, original: BaseException) -> None:
        super().__init__(f"TaskCallbackError(label={label}): {original!r}")
        self.label = label
        self.original = original


class TaskDispatcher:
    """仕事の投入とプール管理のみを担当。

    スケジューリング判断（いつ発火するか）は呼び出し側のエンティティに委ね、
    ここでは「独立に・止まらずに・例外を漏らさずに」実行することだけを保証する。
    """

    def __init__(
        self,
        max_workers: int = 4,
        *,
        on_error: ErrorHook | None = None,
        thread_name_prefix: str = "tick-worker",
    ):
        self._inline = max_workers < 1
        self._on_error = on_error
        self._executor: ThreadPoolExecutor | None = None
        if not self._inline:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix=thread_name_prefix
            )
        # 冪等な close() のための内部フラグ
        self._closed: bool = False
        self._lock = Lock()

    @property
    def inline(self) -> bool:
        return self._inline

    @property
    def closed(self) -> bool:
        return self._closed

    def submit(self, label: str, fn: Callable[..., Any], *args: Any) -> None:
        """`fn(*args)` を 1 単位として投入する（結果は返さない）。"""
        if self._closed:
            logger.debug("dispatcher closed; dropping %s", label)
            return
        if self._executor is None:
            self._run_isolated(label, fn, args)
            return
        try:
            self._executor.submit(self._run_isolated, label, fn, args)
        except RuntimeError:
            # close() と競合してシャットダウン済みのプールに当たった
            logger.debug("executor shut down; dropping %s", label)

    def _run_isolated(self, label: str, fn: Callable[..., Any], args: tuple[Any, ...]) -> None:
        try:
            fn(*args)
        except Exception as e:
            logger.exception("[dispatch] stage=run label=%s error=%s", label, e)
            self._report(label, e)

    def _report(self, label: str, exc: Exception) -> None:
        hook = self._on_error
        if hook is None:
            return
        try:
            hook(label, TaskCallbackError(label, exc))
        except Exception:
            logger.exception("[dispatch] stage=on_error label=%s", label)

    def close(self, wait: bool = False) -> None:
        """プールを停止する（多重呼び出しに安全）。実行中の仕事は中断しない。"""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=wait)


__all__ = ["TaskDispatcher", "TaskCallbackError"]
