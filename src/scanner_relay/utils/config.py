import copy
import json
import logging
import os
from pathlib import Path

from scanner_relay.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = {
    "input_device": "Barcode Scanner",
    "data_separator": "/",
    "data_fields": ["code"],
    "send_frequency": 30,
    "api_endpoints": {},
    "environment": "production",
    "failure_reset_threshold": 5,
    "network_reset_command": None,
    "request_timeout": 30,
    "reset_failures_on_success": True,
    "log_type": "console",
    "log_dir": "logs",
}

LOG_TYPES = ("console", "file")


def get_config_path(path=None):
    """Path to the config file: explicit path, then SCANNER_RELAY_CONFIG, then config.json in the project root"""
    if path:
        return Path(path)
    env_path = os.getenv("SCANNER_RELAY_CONFIG")
    if env_path and env_path.strip():
        return Path(env_path)
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    return project_root / 'config.json'


def validate_config(config):
    """Raise ConfigError describing the first unusable value"""
    if not isinstance(config.get("input_device"), str) or not config["input_device"]:
        raise ConfigError("input_device must be a non-empty string")

    if not isinstance(config.get("data_separator"), str) or not config["data_separator"]:
        raise ConfigError("data_separator must be a non-empty string")

    fields = config.get("data_fields")
    if not isinstance(fields, list) or not fields or not all(isinstance(f, str) and f for f in fields):
        raise ConfigError("data_fields must be a non-empty list of field names")

    try:
        frequency = float(config.get("send_frequency"))
    except (TypeError, ValueError):
        raise ConfigError(f"send_frequency is not a number: {config.get('send_frequency')!r}")
    if frequency <= 0:
        raise ConfigError("send_frequency must be positive")

    endpoints = config.get("api_endpoints")
    if not isinstance(endpoints, dict):
        raise ConfigError("api_endpoints must map environment names to URLs")
    if config.get("environment") not in endpoints:
        raise ConfigError(
            f"No endpoint for environment {config.get('environment')!r}. "
            f"Known environments: {sorted(endpoints)}"
        )

    threshold = config.get("failure_reset_threshold")
    if not isinstance(threshold, int) or isinstance(threshold, bool) or threshold < 1:
        raise ConfigError("failure_reset_threshold must be an integer of at least 1")

    if config.get("log_type") not in LOG_TYPES:
        raise ConfigError(f"log_type must be one of {LOG_TYPES}")


def get_endpoint(config):
    """Endpoint URL for the active environment"""
    return config["api_endpoints"][config["environment"]]


def save_config(config, path=None):
    """Save configuration to the config file, keeping a .json.bak of the previous one"""
    try:
        config_path = get_config_path(path)

        # Create backup of existing config
        if config_path.exists():
            backup_path = config_path.with_suffix('.json.bak')
            try:
                backup_path.write_text(config_path.read_text())
                logger.info(f"Backup created at: {backup_path}")
            except OSError as e:
                logger.warning(f"⚠️ Failed to create backup: {e}")

        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)
        logger.info(f"Configuration saved to: {config_path}")
        return True
    except OSError as e:
        logger.error(f"❌ Error saving configuration: {e}")
        return False


def load_config(path=None):
    """Load configuration from config file first, then override with environment variables if present"""
    config = copy.deepcopy(DEFAULT_CONFIG)
    config_path = get_config_path(path)

    logger.debug(f"Looking for config file at: {config_path}")

    if config_path.exists():
        try:
            with open(config_path, 'r') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"❌ Error reading config file {config_path}: {e}")
            return None
        if not isinstance(file_config, dict):
            logger.error(f"❌ Config file {config_path} must contain a JSON object")
            return None
        config.update(file_config)
    else:
        logger.warning(f"⚠️ Config file not found at: {config_path}")

    # Override with environment variables if they exist
    env_overrides = {
        "SCANNER_INPUT_DEVICE": "input_device",
        "SCANNER_ENVIRONMENT": "environment",
        "SCANNER_SEND_FREQUENCY": "send_frequency",
        "SCANNER_LOG_TYPE": "log_type",
    }
    for env_name, key in env_overrides.items():
        value = os.getenv(env_name)
        if value and value.strip():
            config[key] = value.strip()

    try:
        validate_config(config)
    except ConfigError as e:
        logger.error(f"❌ Invalid configuration: {e}")
        return None

    config["send_frequency"] = float(config["send_frequency"])
    return config
