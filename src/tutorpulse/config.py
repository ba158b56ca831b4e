# ABOUTME: Loads analytics thresholds from YAML with dataclass defaults.
# ABOUTME: Lets deployments tune risk, quadrant, and goal-urgency cut-offs.

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

CONFIG_ENV_VAR = "TUTORPULSE_CONFIG"


@dataclass(frozen=True)
class AnalyticsConfig:
    quadrant_midpoint: float = 5.5
    session_quadrant_midpoint: float = 6.0
    stale_after_days: int = 21
    min_sessions_for_cancellation: int = 3
    cancellation_risk_ratio: float = 0.3
    recent_window: int = 3
    low_score_threshold: float = 4.0
    high_risk_reasons: int = 3
    top_improvements: int = 10
    urgent_goal_days: int = 7
    upcoming_goal_days: int = 30


DEFAULT_CONFIG = AnalyticsConfig()


def load_config(path: Optional[Union[str, Path]] = None) -> AnalyticsConfig:
    """
    Load thresholds from a YAML file.

    Falls back to the `TUTORPULSE_CONFIG` environment variable and then to the
    built-in defaults. Keys may sit at the top level or under `analytics:`.
    """

    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if not env_path:
            return DEFAULT_CONFIG
        path = env_path

    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"Missing analytics config at {config_path}")

    with open(config_path) as f:
        cfg = yaml.safe_load(f) or {}

    if not isinstance(cfg, dict):
        raise ValueError(f"Config at {config_path} must be a mapping, got {type(cfg).__name__}.")
    section = cfg.get("analytics", cfg)
    return config_from_mapping(section or {})


def config_from_mapping(values: Dict[str, Any]) -> AnalyticsConfig:
    known = [f.name for f in fields(AnalyticsConfig)]
    unknown = sorted(set(values) - set(known))
    if unknown:
        raise ValueError(f"Unsupported config key(s): {', '.join(unknown)}. Expected one of: {', '.join(known)}.")

    overrides = {}
    for key, value in values.items():
        default = getattr(DEFAULT_CONFIG, key)
        try:
            overrides[key] = type(default)(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Config key '{key}' expects a number, got {value!r}.") from exc
    return replace(DEFAULT_CONFIG, **overrides)
