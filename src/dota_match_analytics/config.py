"""加载 config.yaml 与默认配置。"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

_CONFIG: dict[str, Any] | None = None


def _default_config() -> dict[str, Any]:
    return {
        "opendota": {
            "base_url": "https://api.opendota.com/api",
            "api_key": "",
            "rate_limit_delay": 1.0,
        },
        "output": {
            "dir": "output",
            "document_file": "{match_id}_analysis.json",
            "ward_map_file": "ward_map.png",
            "heatmap_file": "heatmap_{hero}.png",
        },
        "replay_dir": "replays",
        "analysis": {
            # 团战切分
            "fight_gap": 20,
            "swing_tail": 20,
            "activity_tail": 2,
            "assist_window": 10,
            # 目标链
            "objective_chain_gap": 15,
            "objective_swing_window": 90,
            "pickoff_window": 45,
            "fight_match_before": 5,
            "fight_match_after": 10,
            # 视野
            "vision_window": 60,
            "vision_radius": 1600.0,
            "deward_lookback": 60,
            "observer_expected_lifetime": 420,
            "sentry_expected_lifetime": 90,
            "position_sample_step": 2,
            "hotspot_eps": 1200.0,
            "hotspot_min_pts": 3,
            # 其他窗口
            "roshan_window": 60,
            "lead_bucket": 60,
            "cc_near_death_window": 2,
            "early_game_end": 420,
            "ult_abilities_path": "",
        },
    }


CONFIG_ENV = "DOTA_ANALYTICS_CONFIG"


def _find_config() -> Path | None:
    """环境变量 DOTA_ANALYTICS_CONFIG 优先，其次当前目录与项目根下的 config.yaml。"""
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env)
    for root in (Path.cwd(), Path(__file__).resolve().parents[2]):
        p = root / "config.yaml"
        if p.is_file():
            return p
    return None


def _merge(base: dict[str, Any], user: dict[str, Any]) -> dict[str, Any]:
    """按段合并：字典段逐键覆盖，其余整体替换。"""
    for key, value in user.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            base[key] = {**base[key], **value}
        else:
            base[key] = value
    return base


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """加载配置（结果缓存）；未提供路径时自动查找 config.yaml。"""
    global _CONFIG
    if _CONFIG is not None:
        return _CONFIG

    base = _default_config()
    path = Path(config_path) if config_path else _find_config()
    if path is not None and path.is_file():
        with open(path, encoding="utf-8") as f:
            user = yaml.safe_load(f) or {}
        if not isinstance(user, dict):
            raise ValueError(f"{path}: top level of config must be a mapping")
        _merge(base, user)

    _CONFIG = base
    return _CONFIG


def reset_config() -> None:
    """清空缓存，下次 load_config 时重新读取。"""
    global _CONFIG
    _CONFIG = None


def get_output_dir() -> Path:
    cfg = load_config()
    out = Path(cfg["output"]["dir"])
    out.mkdir(parents=True, exist_ok=True)
    return out
