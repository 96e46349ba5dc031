"""Package archive and metadata formats.

Packages are tar archives described by TOML descriptors; repositories
publish a TOML manifest of current versions.
"""

from .archive import Package, create_archive
from .metadata import PackageMeta, PackageMetaList

__all__ = [
    "Package",
    "PackageMeta",
    "PackageMetaList",
    "create_archive",
]
