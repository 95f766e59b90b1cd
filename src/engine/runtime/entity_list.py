"""
どこで: `engine.runtime` の所有リスト。
何を: 生存中エンティティ（IntervalTimer/FrameRunner）の順序なしリスト。名前検索・
      取得または生成（原子的）・名前の出現待ち・スナップショット走査を提供。
なぜ: tick ドライバの走査と、任意スレッド（タスク内を含む）からの登録/破棄が
      同時に起きても、途中状態を観測させないため。
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Generic, Iterator, Protocol, TypeVar

logger = logging.getLogger(__name__)


class _Named(Protocol):
    @property
    def name(self) -> str: ...


E = TypeVar("E", bound=_Named)


class EntityList(Generic[E]):
    """ロック付きのエンティティ列。走査は常にスナップショットに対して行う。"""

    def __init__(self, *, poll_interval: float = 1.0 / 60.0) -> None:
        self._items: list[E] = []
        self._cond = threading.Condition(threading.RLock())
        self._poll_interval = max(1e-3, float(poll_interval))

    # ---- 基本操作 ----
    def append(self, entity: E) -> None:
        with self._cond:
            self._items.append(entity)
            self._cond.notify_all()

    def remove(self, entity: E) -> bool:
        """同一性で取り除く。見つかれば True。"""
        with self._cond:
            for i, item in enumerate(self._items):
                if item is entity:
                    del self._items[i]
                    return True
            return False

    def __contains__(self, entity: object) -> bool:
        with self._cond:
            return any(item is entity for item in self._items)

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(self.snapshot())

    def snapshot(self) -> list[E]:
        with self._cond:
            return list(self._items)

    # ---- 名前での解決 ----
    def find_by_name(self, name: str) -> E | None:
        """名前が一致する最初のエンティティ。無ければ None。"""
        with self._cond:
            return self._find_locked(name)

    def _find_locked(self, name: str) -> E | None:
        for item in self._items:
            if item.name == name:
                return item
        return None

    def get_or_create(self, name: str, factory: Callable[[], E]) -> tuple[E, bool]:
        """同名が居ればそれを、居なければ `factory()` を追加して返す。

        Returns
        -------
        (entity, created)
        """
        with self._cond:
            existing = self._find_locked(name)
            if existing is not None:
                return existing, False
            entity = factory()
            self._items.append(entity)
            self._cond.notify_all()
            return entity, True

    def wait_for(self, name: str, timeout: float) -> E | None:
        """`name` が現れるか `timeout` 秒経過するまで呼び出し元だけを待たせる。

        Condition.wait はロックを解放するため、tick ドライバの走査や登録は止めない。
        通知の取りこぼしに備えて `poll_interval` ごとにも再確認する。
        """
        deadline = time.monotonic() + max(0.0, float(timeout))
        with self._cond:
            while True:
                found = self._find_locked(name)
                if found is not None:
                    return found
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.debug("wait_for(%r) timed out after %.3fs", name, timeout)
                    return None
                self._cond.wait(min(remaining, self._poll_interval))


__all__ = ["EntityList"]
