"""Configuration management."""
import os
import yaml
from pathlib import Path

_DEFAULT_CONFIG = Path(__file__).parent / "default_config.yaml"


def load_config(path=None):
    """Load config from YAML, merging defaults with optional overrides."""
    with open(_DEFAULT_CONFIG) as f:
        config = yaml.safe_load(f)

    if path and Path(path).exists():
        with open(path) as f:
            overrides = yaml.safe_load(f) or {}
        config = _deep_merge(config, overrides)

    # Environment variable overrides
    env_map = {
        "COGSYNC_LOG_LEVEL": ("logging", "level"),
        "COGSYNC_AUDIT_CAPACITY": ("audit", "capacity"),
        "COGSYNC_DOMAINS_DIR": ("domains", "dir"),
    }
    for env_key, config_path in env_map.items():
        val = os.environ.get(env_key)
        if val:
            d = config
            for k in config_path[:-1]:
                d = d.setdefault(k, {})
            try:
                d[config_path[-1]] = int(val)
            except ValueError:
                d[config_path[-1]] = val

    _validate_config(config)
    return config


def domains_dir(config):
    """Configured domain rule directory, or None for the bundled one."""
    configured = (config.get("domains") or {}).get("dir")
    return Path(configured) if configured else None


def _deep_merge(base, override):
    """Recursively merge override into base dict."""
    result = base.copy()
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _validate_config(config):
    """Basic config validation."""
    required_sections = ["monitor", "automation", "audit", "ingest", "alerts", "logging", "domains"]
    for section in required_sections:
        if not isinstance(config.get(section), dict):
            raise ValueError(f"Missing required config section: {section}")

    capacity = config["audit"]["capacity"]
    if not isinstance(capacity, int) or capacity < 1:
        raise ValueError("audit.capacity must be a positive integer")

    if config["monitor"]["history_window"] < 1:
        raise ValueError("monitor.history_window must be >= 1")

    if config["ingest"]["max_bytes"] < 1:
        raise ValueError("ingest.max_bytes must be positive")
