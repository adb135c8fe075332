import copy
import json
import logging
import os
from typing import Dict, Any, Optional

CONFIG_ENV_VAR = "IMELT_CONFIG"
DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config", "settings.json")

# Fallback Defaults (used when settings.json is missing or partial)
DEFAULTS: Dict[str, Any] = {
    "server": {
        "host": "0.0.0.0",
        "port": 8000,
        "cors_origins": ["*"],
    },
    "simulation": {
        "tick_interval_sec": 2.0,
        "sim_seconds_per_tick": 3.0,
        "refine_at_tick": 120,
        "tap_at_tick": 900,
        "energy_event_every": 30,
        "insight_every_ticks": 5,
        "heat_mass_t": 85.0,
        "autostart": True,
        "default_seed": 42,
        "default_heat_id": 93378,
    },
    "confidence": {
        "max": 95,
        "resolve_bonus": 5,
        "max_resolve_bonus": 10,
    },
    "ai": {
        "base_url": "https://openrouter.ai/api/v1",
        "model": "anthropic/claude-3.5-sonnet",
        "api_key_env": "OPENROUTER_API_KEY",
        "timeout_sec": 8.0,
        "max_tokens": 500,
        "temperature": 0.3,
        "referer": "http://localhost:8000",
        "title": "I-MELT Operator AI",
    },
    "logging": {
        "level": "INFO",
        "format": "[IMELT] %(asctime)s | %(name)s | %(message)s",
    },
    "sync": {
        "dt_per_min": 1.8,
        "cost_per_10c": 150.0,
        "shop_cadence_per_day": 24,
        "shop_working_days": 350,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings.json layered over the built-in defaults.

    Lookup order: explicit path, $IMELT_CONFIG, packaged config/settings.json.
    A missing file is not an error; the defaults are returned as-is.
    """
    config = copy.deepcopy(DEFAULTS)
    config_path = path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r") as f:
            _merge(config, json.load(f))
    except FileNotFoundError:
        logging.getLogger("Settings").warning(f"Config {config_path} not found, using defaults")
    return config


def configure_logging(config: Dict[str, Any]) -> None:
    log_cfg = config["logging"]
    logging.basicConfig(
        level=getattr(logging, str(log_cfg["level"]).upper(), logging.INFO),
        format=log_cfg["format"],
        datefmt="%H:%M:%S",
    )
