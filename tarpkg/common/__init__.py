"""Common utilities for tarpkg."""

from .config import PkgConfig, load_config, load_mirrors, load_typed_config
from .errors import InvalidDataError, NotFoundError, PackageError
from .logger import get_logger, setup_logger

__all__ = [
    "InvalidDataError",
    "NotFoundError",
    "PackageError",
    "PkgConfig",
    "get_logger",
    "load_config",
    "load_mirrors",
    "load_typed_config",
    "setup_logger",
]
