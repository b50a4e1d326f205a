import json
import os
from typing import Any, Dict, Mapping, Optional

CONFIG_PATH = "soundcloud.json"

# Default configuration values
DEFAULT_CONFIG = {
    "client_id": "",
    "client_secret": "",
    # Sent as the OAuth redirect_uri; must match the app registration exactly.
    "callback_url": "",
}

# Environment variables that override values from the config file
ENV_OVERRIDES = {
    "client_id": "SOUNDCLOUD_CLIENT_ID",
    "client_secret": "SOUNDCLOUD_CLIENT_SECRET",
    "callback_url": "SOUNDCLOUD_CALLBACK_URL",
}

# Validation rules for config fields
CONFIG_SCHEMA = {
    "client_id": {"type": str, "required": True, "non_empty": True},
    "client_secret": {"type": str, "required": True, "non_empty": True},
    "callback_url": {"type": str, "required": False},
}


def load_config(path: Optional[str] = None, *, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Load configuration from file (if present), applying defaults and env overrides."""
    path = path or CONFIG_PATH
    environ = os.environ if environ is None else environ

    config: Dict[str, Any] = {}
    if os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            config = json.load(f)

    # Apply defaults for missing fields
    for key, value in DEFAULT_CONFIG.items():
        if key not in config:
            config[key] = value

    for key, env_name in ENV_OVERRIDES.items():
        if environ.get(env_name):
            config[key] = environ[env_name]

    return config


def save_config(config: Dict[str, Any], path: Optional[str] = None) -> bool:
    """Save configuration to file."""
    try:
        with open(path or CONFIG_PATH, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)
        return True
    except Exception as e:
        raise IOError(f"Failed to save config: {e}")


def validate_config(config: Dict[str, Any]) -> tuple[bool, list[str]]:
    """
    Validate configuration against schema.
    Returns (is_valid, list_of_errors).
    """
    errors = []

    for key, rules in CONFIG_SCHEMA.items():
        # Check required fields
        if rules.get("required", False) and key not in config:
            errors.append(f"Missing required field: {key}")
            continue

        if key not in config:
            continue

        value = config[key]

        expected_type = rules.get("type")
        if expected_type and not isinstance(value, expected_type):
            errors.append(f"Field '{key}' must be {expected_type.__name__}, got {type(value).__name__}")
            continue

        if rules.get("non_empty") and not str(value).strip():
            errors.append(f"Field '{key}' must not be empty")

    return len(errors) == 0, errors
