# Copyright (c) 2025
# MIT License
# -----------------------------------------------------------------------------
# config.py
# -----------------------------------------------------------------------------
# Purpose:
#   Run configuration: built-in defaults, YAML loading, scenario overrides
#   and validation.
#
# Design notes:
#   - Configs stay plain nested dicts (sim / arrivals / capacity / policies /
#     experiments) so scenario overrides can be merged recursively.
#   - validate_cfg() is called once before any simulation runs; a bad config
#     is fatal.
#
# Usage:
#   cfg = validate_cfg(apply_overrides(load_cfg(), {"sim": {"days": 100}}))
# -----------------------------------------------------------------------------

from __future__ import annotations
import copy, os
from typing import Dict, Optional
import yaml
from .policies import Policy

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_CONFIG_PATH = os.path.join(ROOT, "config", "baseline.yaml")

DEFAULT_CFG: Dict = {
    "sim": {
        "days": 20,
        "seed": 0,
        "max_print": 20,       # print traces/ticket tables up to this size
    },
    "arrivals": {
        "mean_per_day": 1.0,
        "stddev_per_day": 1.0,
        "mean_effort": 6.0,
        "stddev_effort": 4.0,
        "min_effort": 1,
    },
    "capacity": {
        "daily_hours": 8,
        "wip_cap_hours_per_ticket": 2,   # equal working only
    },
    "policies": [p.value for p in Policy],
    "experiments": {
        "replications": 1,
        "confidence_level": 0.95,
        "crn_compare": [],
        "plot": False,
    },
}

class ConfigError(ValueError):
    """Raised for an invalid run configuration."""

def apply_overrides(cfg: Dict, overrides: Dict) -> Dict:
    """Apply scenario overrides (recursive merge) on top of the base config."""
    new = copy.deepcopy(cfg)

    def _merge(dst: Dict, src: Dict):
        for key, val in src.items():
            if isinstance(val, dict) and isinstance(dst.get(key), dict):
                _merge(dst[key], val)
            else:
                dst[key] = copy.deepcopy(val)

    _merge(new, overrides)
    return new

def load_cfg(path: Optional[str] = None) -> Dict:
    """
    Load a YAML config and merge it over DEFAULT_CFG.

    With no path the repository's config/baseline.yaml is used when present,
    otherwise the built-in defaults.
    """
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            return copy.deepcopy(DEFAULT_CFG)
        path = DEFAULT_CONFIG_PATH
    with open(path, "r") as f:
        try:
            loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path}: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    return apply_overrides(DEFAULT_CFG, loaded)

def _require_int(section: Dict, key: str, where: str, minimum: int) -> int:
    val = section.get(key)
    # bool is an int subclass but never a valid count
    if isinstance(val, bool) or not isinstance(val, int):
        raise ConfigError(f"{where}.{key} must be an integer, got {val!r}")
    if val < minimum:
        raise ConfigError(f"{where}.{key} must be >= {minimum}, got {val}")
    return val

def _require_number(section: Dict, key: str, where: str, minimum: Optional[float] = None) -> float:
    val = section.get(key)
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        raise ConfigError(f"{where}.{key} must be a number, got {val!r}")
    if minimum is not None and val < minimum:
        raise ConfigError(f"{where}.{key} must be >= {minimum}, got {val}")
    return float(val)

def validate_cfg(cfg: Dict) -> Dict:
    """Check a merged config and return it unchanged; raise ConfigError otherwise."""
    for section in ("sim", "arrivals", "capacity", "experiments"):
        if not isinstance(cfg.get(section), dict):
            raise ConfigError(f"missing config section '{section}'")
    sim, arr, cap, exp = cfg["sim"], cfg["arrivals"], cfg["capacity"], cfg["experiments"]

    _require_int(sim, "days", "sim", 0)
    _require_int(sim, "max_print", "sim", 0)
    seed = sim.get("seed")
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, int)):
        raise ConfigError(f"sim.seed must be an integer or null, got {seed!r}")

    _require_number(arr, "mean_per_day", "arrivals")
    _require_number(arr, "stddev_per_day", "arrivals", 0.0)
    _require_number(arr, "mean_effort", "arrivals")
    _require_number(arr, "stddev_effort", "arrivals", 0.0)
    _require_int(arr, "min_effort", "arrivals", 1)

    _require_int(cap, "daily_hours", "capacity", 0)
    _require_int(cap, "wip_cap_hours_per_ticket", "capacity", 1)

    policies = cfg.get("policies")
    if not isinstance(policies, list) or not policies:
        raise ConfigError("policies must be a non-empty list of policy names")
    seen = set()
    for name in policies:
        try:
            Policy.from_name(name)
        except ValueError as exc:
            raise ConfigError(str(exc)) from None
        if name in seen:
            raise ConfigError(f"policy {name!r} listed twice")
        seen.add(name)

    _require_int(exp, "replications", "experiments", 1)
    level = _require_number(exp, "confidence_level", "experiments")
    if not 0.0 < level < 1.0:
        raise ConfigError(f"experiments.confidence_level must be in (0, 1), got {level}")
    crn = exp.get("crn_compare") or []
    if not isinstance(crn, list):
        raise ConfigError("experiments.crn_compare must be a list of policy pairs")
    return cfg
