import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parent.parent / "settings.json"


class ConfigError(Exception):
    """Raised when a settings file that was asked for explicitly cannot be used."""


def load_config(path: Optional[Union[str, Path]] = None, required: bool = False) -> Dict[str, Any]:
    """
    Loads the engine configuration from a JSON settings file.

    Without a path the packaged settings.json is used. A missing or unreadable
    file yields an empty configuration, so the built-in defaults apply; with
    `required=True` it raises ConfigError instead.
    """
    config_path = Path(path) if path is not None else DEFAULT_SETTINGS_PATH
    try:
        if not config_path.exists():
            if required:
                raise ConfigError(f"Configuration file '{config_path}' not found.")
            logger.warning("Configuration file '%s' not found. Using empty config.", config_path)
            return {}

        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)

    except (OSError, json.JSONDecodeError) as e:
        if required:
            raise ConfigError(f"Failed to load {config_path}: {e}") from e
        logger.error("Failed to load %s: %s", config_path, e, exc_info=True)
        return {}

    if not isinstance(data, dict):
        if required:
            raise ConfigError(f"Configuration file '{config_path}' must contain a JSON object.")
        logger.error("Configuration file '%s' must contain a JSON object.", config_path)
        return {}
    return data


CONFIG = load_config()


def get_nested_config(key_path: str, default: Optional[Any] = None, config: Optional[Dict[str, Any]] = None) -> Any:
    """
    Safely retrieves a nested value from a configuration dictionary.

    Uses a dot as a separator, e.g., 'validation.disabled_codes'. Reads the
    packaged CONFIG unless another mapping is given.

    Args:
        key_path (str): The dotted path to the configuration value.
        default (Any, optional): The default value to return if the key is not found.
        config (dict, optional): The configuration to read from.

    Returns:
        Any: The configuration value or the provided default.
    """
    value: Any = CONFIG if config is None else config

    for key in key_path.split('.'):
        if isinstance(value, dict):
            value = value.get(key)
        else:
            # If the current level is not a dictionary, the path is invalid
            return default

    return value if value is not None else default
