"""
どこで: `util.utils`。
何を: YAML 構成の読み込み（フェイルソフト）と、タスクランナー節の取り出し。
なぜ: 既定スケジュール/レンダの事前登録を設定ファイルで宣言できるようにするため。

構成例（`configs/default.yaml`）:
    task_runner:
      heartbeat_hz: 60
      schedules:
        autosave: {tick: 30.0}
      renders:
        - camera
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

logger = logging.getLogger(__name__)


def _safe_load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("failed to load config %s: %s", path, exc)
        return {}


def _find_project_root(start: Path) -> Path:
    """プロジェクトルートを推定して返す。

    - `src/` 配下から呼ばれることを想定し、上位に `.git` や `pyproject.toml`、`configs/` がある
      もっとも近いディレクトリを返す。
    - 見つからない場合は `start.parent.parent` をフォールバックとして返す。
    """
    cur = start.resolve()
    for parent in [cur] + list(cur.parents):
        if (
            (parent / ".git").exists()
            or (parent / "pyproject.toml").exists()
            or (parent / "configs").exists()
        ):
            return parent
    # 典型: <repo>/src/util/utils.py -> <repo>
    return cur.parent.parent


def load_config(root: Path | None = None) -> Dict[str, Any]:
    """構成を読み込んで辞書で返す（フェイルソフト）。

    優先順:
    1) `configs/default.yaml`（ベース）
    2) ルート `config.yaml`（ベースに上書き）

    - いずれも存在しない/不正な場合は空辞書を返す。
    - ネストした辞書のディープマージは行わず、トップレベルのみ上書き。
    - `root` 省略時はこのファイルの位置からプロジェクトルートを推定する。
    """
    project_root = root if root is not None else _find_project_root(Path(__file__).parent)
    base: Dict[str, Any] = {}

    default_path = project_root / "configs" / "default.yaml"
    if default_path.exists():
        base.update(_safe_load_yaml(default_path))

    root_config_path = project_root / "config.yaml"
    if root_config_path.exists():
        base.update(_safe_load_yaml(root_config_path))

    return base


def task_runner_section(cfg: Mapping[str, Any] | None) -> Dict[str, Any]:
    """構成辞書から `task_runner` 節を取り出す（不正/欠落時は空辞書）。"""
    if not isinstance(cfg, Mapping):
        return {}
    section = cfg.get("task_runner")
    return dict(section) if isinstance(section, Mapping) else {}


__all__ = ["load_config", "task_runner_section"]
