"""Configuration resolution for fly.

Settings come from, in order of priority: command-line flags, environment
variables, the YAML config file, and built-in defaults.
"""
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

# Default paths
DEFAULT_SOURCEDIR = Path("migrations")
DEFAULT_DATABASE = Path("fly.sqlite")
DEFAULT_CONFIG_PATH = Path("fly.yaml")

# Environment variables
ENV_SOURCEDIR = "FLY_SOURCEDIR"
ENV_DATABASE = "FLY_DATABASE"
ENV_CONFIG = "FLY_CONFIG"


@dataclass(frozen=True)
class FlyConfig:
    """Resolved settings for one invocation."""
    database: Path = DEFAULT_DATABASE
    sourcedir: Path = DEFAULT_SOURCEDIR


def load_config_file(path: Union[str, Path]) -> Dict[str, Any]:
    """Read settings from a YAML config file.

    Args:
        path: Path to the YAML file.

    Returns:
        Mapping of settings; empty if the document is empty.

    Raises:
        ConfigError: If the file cannot be read or is not a mapping.
    """
    path = Path(path)
    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigError(f"could not read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid config {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"invalid config {path}: expected a mapping")

    logger.debug(f"Loaded config from {path}")
    return data


def resolve_config(sourcedir: Optional[Union[str, Path]] = None,
                   database: Optional[Union[str, Path]] = None,
                   config_path: Optional[Union[str, Path]] = None) -> FlyConfig:
    """Build a FlyConfig from flags, environment and config file.

    Priority per key: explicit argument > environment variable > config
    file > default. The config file is optional unless named explicitly.

    Args:
        sourcedir: Value of --sourcedir, if provided.
        database: Value of --database, if provided.
        config_path: Value of --config, if provided.
    """
    file_settings: Dict[str, Any] = {}
    explicit = config_path or os.getenv(ENV_CONFIG)
    if explicit:
        file_settings = load_config_file(explicit)
    elif DEFAULT_CONFIG_PATH.exists():
        file_settings = load_config_file(DEFAULT_CONFIG_PATH)

    def pick(flag_value, env_name: str, key: str, default: Path) -> Path:
        if flag_value:
            return Path(flag_value)
        env_value = os.getenv(env_name)
        if env_value:
            return Path(env_value)
        if file_settings.get(key):
            return Path(str(file_settings[key]))
        return default

    return FlyConfig(
        database=pick(database, ENV_DATABASE, "database", DEFAULT_DATABASE),
        sourcedir=pick(sourcedir, ENV_SOURCEDIR, "sourcedir", DEFAULT_SOURCEDIR),
    )
