"""Package descriptors and repository manifests.

Both are TOML documents. A descriptor names one package::

    name = "hello"
    version = "1.0.0"

A manifest (``repo.toml``) maps every package of a repository to its
current version::

    [packages]
    hello = "1.2.0"
"""

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Union

from ..common.errors import InvalidDataError
from ..common.logger import get_logger

logger = get_logger("metadata")


def _loads(text: str) -> dict:
    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise InvalidDataError(f"TOML error: {e}") from e


@dataclass
class PackageMeta:
    """Name and version of a single package."""

    name: str
    version: str

    @classmethod
    def from_toml(cls, text: str) -> "PackageMeta":
        """Parse a package descriptor.

        Keys other than ``name`` and ``version`` are ignored.

        Raises:
            InvalidDataError: If the text is not TOML or a field is missing
                or not a string
        """
        data = _loads(text)
        for key in ("name", "version"):
            if not isinstance(data.get(key), str):
                raise InvalidDataError(f"TOML error: missing string field `{key}`")
        return cls(name=data["name"], version=data["version"])


@dataclass
class PackageMetaList:
    """Mapping of package name to version."""

    packages: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_toml(cls, text: str) -> "PackageMetaList":
        """Parse a repository manifest.

        A document without a ``[packages]`` table is an empty manifest.

        Raises:
            InvalidDataError: If the text is not TOML or a version is not a string
        """
        data = _loads(text)
        table = data.get("packages", {})
        if not isinstance(table, dict):
            raise InvalidDataError("TOML error: `packages` must be a table")

        packages = {}
        for name, version in table.items():
            if not isinstance(version, str):
                raise InvalidDataError(
                    f"TOML error: version of `{name}` must be a string"
                )
            packages[name] = version
        return cls(packages=packages)

    @classmethod
    def from_installed(cls, installed_dir: Union[str, Path]) -> "PackageMetaList":
        """Collect descriptors of installed packages.

        Every regular file in ``installed_dir`` is parsed as a descriptor.
        Files that are not valid descriptors are skipped with a warning;
        a missing directory yields an empty list.

        Raises:
            OSError: If a descriptor file cannot be read
        """
        directory = Path(installed_dir)
        installed = cls()
        if not directory.is_dir():
            return installed

        for entry in sorted(directory.iterdir()):
            if not entry.is_file():
                continue
            try:
                meta = PackageMeta.from_toml(entry.read_text())
            except (InvalidDataError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping descriptor {entry}: {e}")
                continue
            installed.packages[meta.name] = meta.version

        return installed
