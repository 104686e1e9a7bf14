"""Configuration file management for the ldoc launcher.

The launcher forwards its whole command line to ldoc, so it has no flags of
its own. Settings come from <INSTALL_ROOT>/etc/ldoc/launcher.toml (table
[launcher]) and can be overridden with LDOC_LAUNCHER_* environment variables.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

# Check Python version for tomllib support (Python 3.11+)
if sys.version_info < (3, 11):
    raise RuntimeError(
        "ldoc-launcher requires Python 3.11 or greater for tomllib support. "
        f"Current version: {sys.version_info.major}.{sys.version_info.minor}"
    )

import tomllib  # Python 3.11+ standard library


CONFIG_RELATIVE_PATH = ("etc", "ldoc", "launcher.toml")

VARIANTS = ("embedded", "file")

DEFAULT_CONFIG: Dict[str, Any] = {
    "variant": "file",
    "script": "bin/ldoc.lua",
    "engine": None,
    "embedded_module": "ldoc_launcher._ldoc_source",
    "verbose": False,
}

ENV_OVERRIDES = {
    "LDOC_LAUNCHER_VARIANT": "variant",
    "LDOC_LAUNCHER_SCRIPT": "script",
    "LDOC_LAUNCHER_ENGINE": "engine",
    "LDOC_LAUNCHER_VERBOSE": "verbose",
}

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class ConfigError(Exception):
    """Raised when configuration file operations fail."""
    pass


def config_file_path(install_root: str) -> Path:
    """Location of the launcher config file under an install root."""
    return Path(install_root).joinpath(*CONFIG_RELATIVE_PATH)


def validate_config(config: Dict[str, Any], source: str) -> Dict[str, Any]:
    """Validate configuration values and filter out unknown keys.
    
    Args:
        config: Dictionary of configuration values
        source: Where the values came from (for error messages)
        
    Returns:
        Validated config dictionary with only known keys
        
    Raises:
        ConfigError: If any validation fails
    """
    # Filter out unknown keys (forward compatibility)
    validated_config = {k: v for k, v in config.items() if k in DEFAULT_CONFIG}

    for key in ("variant", "script", "engine", "embedded_module"):
        if key in validated_config and not isinstance(validated_config[key], str):
            raise ConfigError(
                f"Invalid value for '{key}' in {source}: "
                f"expected string, got {type(validated_config[key]).__name__}"
            )

    if "variant" in validated_config and validated_config["variant"] not in VARIANTS:
        raise ConfigError(
            f"Invalid value for 'variant' in {source}: "
            f"must be one of 'embedded', 'file', got '{validated_config['variant']}'"
        )

    if "script" in validated_config:
        script = validated_config["script"]
        if not script.strip():
            raise ConfigError(f"Invalid value for 'script' in {source}: must not be empty")
        if os.path.isabs(script):
            raise ConfigError(
                f"Invalid value for 'script' in {source}: "
                f"must be relative to the install root, got '{script}'"
            )

    if "verbose" in validated_config:
        if not isinstance(validated_config["verbose"], bool):
            raise ConfigError(
                f"Invalid value for 'verbose' in {source}: "
                f"expected boolean, got {type(validated_config['verbose']).__name__}"
            )

    return validated_config


def load_config_file(install_root: str) -> Dict[str, Any]:
    """Load the [launcher] table of the config file, or {} if there is no file.
    
    Raises an exception if the config file exists but cannot be parsed, so users can fix errors.
    
    Args:
        install_root: Install root the config file is looked up under
        
    Returns:
        Validated configuration values from the file
        
    Raises:
        ConfigError: If config file exists but contains invalid TOML, values, or cannot be read
    """
    config_file = config_file_path(install_root)
    if not config_file.is_file():
        return {}

    try:
        with open(config_file, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(
            f"Failed to parse {config_file}: Invalid TOML syntax - {e}"
        ) from e
    except OSError as e:
        raise ConfigError(
            f"Failed to read {config_file}: {e}"
        ) from e

    section = data.get("launcher", {})
    if not isinstance(section, dict):
        raise ConfigError(f"Invalid [launcher] section in {config_file}: expected a table")
    return validate_config(section, str(config_file))


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid value for {name}: expected a boolean, got '{value}'")


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Collect LDOC_LAUNCHER_* overrides from the environment.

    Raises:
        ConfigError: If a value is invalid
    """
    if environ is None:
        environ = os.environ

    config: Dict[str, Any] = {}
    for env_name, key in ENV_OVERRIDES.items():
        if env_name not in environ:
            continue
        value = environ[env_name]
        if key == "verbose":
            config[key] = _parse_bool(env_name, value)
        else:
            config[key] = value
    return validate_config(config, "environment")


def load_config(install_root: str, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Build the effective configuration: defaults, then file, then environment.

    Args:
        install_root: Install root the config file is looked up under
        environ: Environment mapping. If None, uses os.environ.

    Returns:
        Dictionary with every key of DEFAULT_CONFIG

    Raises:
        ConfigError: If the file or an environment override is invalid
    """
    config = dict(DEFAULT_CONFIG)
    config.update(load_config_file(install_root))
    config.update(config_from_env(environ))
    return config
