"""
どこで: `common.settings`
何を: タスクランナーの環境変数を型付きで一元管理し、起動時に読み込む。
なぜ: `os.getenv` の散在を解消し、既定値/型の一貫性とテスト容易性を高めるため。

環境変数:
- `TICK_MAX_WORKERS`: エンティティ tick 用スレッド数（0 以下でインライン実行）。
- `TICK_TASK_WORKERS`: タスクコールバック用スレッド数（0 以下でインライン実行）。
- `TICK_HEARTBEAT_HZ`: ハートビートの駆動周波数 [Hz]。
- `TICK_WAIT_POLL_INTERVAL`: `wait_for_*` の再確認間隔 [sec]。
- `TICK_LOG_LEVEL`: `setup_default_logging()` に渡す既定レベル。
"""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, env_str

_DEFAULT_MAX_WORKERS = 4
_DEFAULT_TASK_WORKERS = 16
_DEFAULT_HEARTBEAT_HZ = 60.0
_DEFAULT_WAIT_POLL_INTERVAL = 1.0 / 60.0


@dataclass
class _Settings:
    # Dispatch
    MAX_WORKERS: int = _DEFAULT_MAX_WORKERS
    TASK_WORKERS: int = _DEFAULT_TASK_WORKERS

    # Drivers
    HEARTBEAT_HZ: float = _DEFAULT_HEARTBEAT_HZ
    WAIT_POLL_INTERVAL: float = _DEFAULT_WAIT_POLL_INTERVAL

    # Misc
    LOG_LEVEL: str = "INFO"


_settings = _Settings()


def reload_from_env() -> None:
    """環境変数から設定を再読込。

    - 周波数/間隔は正値のみ受け付け、0 以下は既定値へフォールバック。
    """
    _settings.MAX_WORKERS = env_int("TICK_MAX_WORKERS", _DEFAULT_MAX_WORKERS, min_value=0) or 0
    _settings.TASK_WORKERS = (
        env_int("TICK_TASK_WORKERS", _DEFAULT_TASK_WORKERS, min_value=0) or 0
    )

    hz = env_float("TICK_HEARTBEAT_HZ", _DEFAULT_HEARTBEAT_HZ)
    _settings.HEARTBEAT_HZ = hz if hz is not None and hz > 0 else _DEFAULT_HEARTBEAT_HZ

    poll = env_float("TICK_WAIT_POLL_INTERVAL", _DEFAULT_WAIT_POLL_INTERVAL)
    _settings.WAIT_POLL_INTERVAL = (
        poll if poll is not None and poll > 0 else _DEFAULT_WAIT_POLL_INTERVAL
    )

    _settings.LOG_LEVEL = env_str("TICK_LOG_LEVEL", "INFO")


def get() -> _Settings:
    """現在の設定スナップショットを返す。"""
    return _settings


# 初期ロード
reload_from_env()


__all__ = ["get", "reload_from_env", "_Settings"]
