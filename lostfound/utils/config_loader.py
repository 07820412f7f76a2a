"""Config loader with environment variable support."""
import os
import re
import yaml
import threading

_config = None
_config_lock = threading.Lock()

# Values that arrive as strings after ${VAR} expansion
_NUMERIC_KEYS = {
    "vision": {"timeout": float, "max_results": int, "max_retries": int},
    "matching": {"threshold": float, "limit": int},
    "files": {"max_size_mb": int, "max_dim": int},
}


def _resolve_env_vars(value):
    """Resolve ${VAR:-default} patterns in config values."""
    if isinstance(value, str):
        pattern = r'\$\{(\w+)(?::-([^}]*))?\}'
        def replacer(match):
            var_name = match.group(1)
            default = match.group(2) or ""
            return os.environ.get(var_name) or default
        return re.sub(pattern, replacer, value)
    elif isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_resolve_env_vars(item) for item in value]
    return value


def _coerce_numbers(config: dict) -> dict:
    for section, keys in _NUMERIC_KEYS.items():
        values = config.get(section) or {}
        for key, cast in keys.items():
            if key not in values:
                continue
            # Empty after expansion: leave it to the caller's default
            if values[key] in ("", None):
                del values[key]
            else:
                values[key] = cast(values[key])
    return config


def load_config(path: str = "config/config.yaml") -> dict:
    """Load configuration from YAML file with thread safety."""
    global _config
    with _config_lock:
        if _config is None:
            with open(path) as f:
                raw_config = yaml.safe_load(f)
            _config = _coerce_numbers(_resolve_env_vars(raw_config))
    return _config


def get_config() -> dict:
    """Get loaded configuration."""
    return _config or load_config()
