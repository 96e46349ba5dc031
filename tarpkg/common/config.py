"""Configuration management for tarpkg.

Handles loading of the YAML settings file and of the mirror list
directory. Both are resolved once, up front, and handed to the
repository client as plain values.
"""

import os
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .logger import get_logger

logger = get_logger("config")

DEFAULT_CONFIG_PATH = "/etc/tarpkg/config.yaml"
DEFAULT_MIRRORS_DIR = "/etc/pkg.d"
DEFAULT_CACHE_DIR = "/tmp/pkg"
DEFAULT_INSTALLED_DIR = "/pkg"
DEFAULT_TIMEOUT = 5


def default_target() -> str:
    """Target identifier of the running host, e.g. "x86_64-unknown-linux"."""
    machine = platform.machine().lower() or "unknown"
    system = platform.system().lower() or "unknown"
    return f"{machine}-unknown-{system}"


@dataclass
class LoggingConfig:
    """Configuration for log output."""

    level: str = "INFO"
    log_dir: str = "/var/log/tarpkg"
    file_logging: bool = False


@dataclass
class PkgConfig:
    """Top-level configuration for tarpkg."""

    cache_dir: str = DEFAULT_CACHE_DIR
    mirrors_dir: str = DEFAULT_MIRRORS_DIR
    mirrors: List[str] = field(default_factory=list)
    target: str = field(default_factory=default_target)
    install_root: str = "/"
    installed_dir: str = DEFAULT_INSTALLED_DIR
    timeout: float = DEFAULT_TIMEOUT
    progress: bool = True
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def parse_logging_config(logging_dict: Dict[str, Any]) -> LoggingConfig:
    """Parse logging configuration dictionary.

    Args:
        logging_dict: Logging configuration dictionary

    Returns:
        LoggingConfig instance
    """
    return LoggingConfig(
        level=logging_dict.get("level", "INFO"),
        log_dir=logging_dict.get("log_dir", "/var/log/tarpkg"),
        file_logging=logging_dict.get("file_logging", False),
    )


def parse_config(config_dict: Dict[str, Any]) -> PkgConfig:
    """Parse the full configuration dictionary.

    Args:
        config_dict: Full configuration dictionary

    Returns:
        PkgConfig instance

    Raises:
        TypeError: If ``mirrors`` is not a list
    """
    mirrors = config_dict.get("mirrors", [])
    if not isinstance(mirrors, list):
        raise TypeError(f"mirrors must be a list, got {type(mirrors).__name__}")

    log_config = LoggingConfig()
    if "logging" in config_dict:
        log_config = parse_logging_config(config_dict["logging"] or {})

    return PkgConfig(
        cache_dir=config_dict.get("cache_dir", DEFAULT_CACHE_DIR),
        mirrors_dir=config_dict.get("mirrors_dir", DEFAULT_MIRRORS_DIR),
        mirrors=[str(m) for m in mirrors],
        target=config_dict.get("target") or default_target(),
        install_root=config_dict.get("install_root", "/"),
        installed_dir=config_dict.get("installed_dir", DEFAULT_INSTALLED_DIR),
        timeout=float(config_dict.get("timeout", DEFAULT_TIMEOUT)),
        progress=config_dict.get("progress", True),
        logging=log_config,
    )


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        config_path: Path to configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with config_file.open("r") as f:
        config = yaml.safe_load(f)

    if config is None:
        config = {}

    if not isinstance(config, dict):
        raise TypeError(
            f"Configuration root must be a mapping, got {type(config).__name__}"
        )

    return _expand_env_vars(config)


def _expand_env_vars(obj: Any) -> Any:
    """Recursively expand environment variables in configuration.

    Args:
        obj: Configuration object (dict, list, str, etc.)

    Returns:
        Configuration with expanded environment variables
    """
    if isinstance(obj, dict):
        return {key: _expand_env_vars(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(item) for item in obj]
    elif isinstance(obj, str):
        return os.path.expandvars(obj)
    else:
        return obj


def load_typed_config(config_path: str = DEFAULT_CONFIG_PATH) -> PkgConfig:
    """Load and parse configuration into typed dataclass.

    A missing file is not an error: the defaults are returned.

    Args:
        config_path: Path to configuration file

    Returns:
        PkgConfig instance

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    try:
        config_dict = load_config(config_path)
    except FileNotFoundError:
        logger.debug(f"No configuration at {config_path}, using defaults")
        config_dict = {}
    return parse_config(config_dict)


def load_mirrors(mirrors_dir: str = DEFAULT_MIRRORS_DIR) -> List[str]:
    """Read mirror base URLs from a directory of plain-text files.

    Files are read in sorted name order. Within a file every line that is
    neither blank nor starts with ``#`` is a URL, kept in line order.
    Unreadable entries are skipped.

    Args:
        mirrors_dir: Directory holding mirror list files

    Returns:
        Ordered list of mirror URLs (first has highest priority)
    """
    directory = Path(mirrors_dir)
    if not directory.is_dir():
        logger.debug(f"Mirror directory not found: {mirrors_dir}")
        return []

    mirrors: List[str] = []
    for entry in sorted(directory.iterdir()):
        if not entry.is_file():
            continue
        try:
            text = entry.read_text()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping unreadable mirror file {entry}: {e}")
            continue

        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            mirrors.append(line)

    return mirrors


def build_mirror_list(config: PkgConfig) -> List[str]:
    """Combine the mirror directory with mirrors listed in the config file.

    Args:
        config: PkgConfig instance

    Returns:
        Directory mirrors followed by ``config.mirrors``
    """
    return load_mirrors(config.mirrors_dir) + list(config.mirrors)
