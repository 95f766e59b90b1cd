from __future__ import annotations

import pytest

from common import settings
from common.env import env_float, env_int, env_str


def test_env_helpers_fall_back_on_invalid(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("X_INT", "abc")
    monkeypatch.setenv("X_FLOAT", "nan")
    monkeypatch.setenv("X_STR", "   ")
    assert env_int("X_INT", 3) == 3
    assert env_float("X_FLOAT", 1.5) == 1.5
    assert env_str("X_STR", "dflt") == "dflt"


def test_env_helpers_parse_and_clamp(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("X_INT", "-4")
    monkeypatch.setenv("X_FLOAT", "0.5")
    assert env_int("X_INT", 1, min_value=0) == 0
    assert env_float("X_FLOAT", 1.0, min_value=1.0) == 1.0
    assert env_int("X_UNSET_INT") is None


def test_reload_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TICK_TASK_WORKERS", "-3")
    monkeypatch.setenv("TICK_MAX_WORKERS", "0")
    monkeypatch.setenv("TICK_HEARTBEAT_HZ", "-5")
    monkeypatch.setenv("TICK_WAIT_POLL_INTERVAL", "0.05")
    monkeypatch.setenv("TICK_LOG_LEVEL", "debug")
    try:
        settings.reload_from_env()
        s = settings.get()
        assert s.MAX_WORKERS == 0
        assert s.TASK_WORKERS == 0  # 下限 0 に丸める
        assert s.HEARTBEAT_HZ == 60.0  # 0 以下は既定値
        assert s.WAIT_POLL_INTERVAL == 0.05
        assert s.LOG_LEVEL == "debug"
    finally:
        for name in (
            "TICK_MAX_WORKERS",
            "TICK_TASK_WORKERS",
            "TICK_HEARTBEAT_HZ",
            "TICK_WAIT_POLL_INTERVAL",
            "TICK_LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)
        settings.reload_from_env()


def test_registry_uses_settings_for_inline_mode(monkeypatch: pytest.MonkeyPatch) -> None:
    from engine.runtime.registry import TaskRegistry

    monkeypatch.setenv("TICK_MAX_WORKERS", "0")
    monkeypatch.setenv("TICK_TASK_WORKERS", "0")
    settings.reload_from_env()
    try:
        reg = TaskRegistry()
        assert reg.dispatcher.inline
        assert reg.task_dispatcher.inline
        assert reg.task_dispatcher is not reg.dispatcher
        reg.close()
        assert reg.dispatcher.closed and reg.task_dispatcher.closed
    finally:
        monkeypatch.delenv("TICK_MAX_WORKERS", raising=False)
        monkeypatch.delenv("TICK_TASK_WORKERS", raising=False)
        settings.reload_from_env()
