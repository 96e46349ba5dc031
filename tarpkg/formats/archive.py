"""Tar package archives.

A package is a plain (uncompressed) tar archive whose members are
relative to the package root. ``create_archive`` builds one from a
directory tree; ``Package`` opens one for a single list or install.
"""

import os
import tarfile
from pathlib import Path
from typing import List, Optional, Union

from ..common.errors import InvalidDataError, NotFoundError, PackageError
from ..common.logger import get_logger

logger = get_logger("archive")


def create_archive(source_dir: Union[str, Path], tar_path: Union[str, Path]) -> Path:
    """Write the contents of ``source_dir`` to a tar archive.

    Member names are relative to ``source_dir`` (the directory name itself
    is not a prefix) and are added in sorted order so that the same tree
    always produces the same member sequence.

    Args:
        source_dir: Directory to archive
        tar_path: Archive file to create (overwritten if present)

    Returns:
        Path to the written archive

    Raises:
        NotFoundError: If ``source_dir`` is not a directory
        OSError: If reading the tree or writing the archive fails
    """
    source = Path(source_dir)
    if not source.is_dir():
        raise NotFoundError(f"{source_dir} not found")

    tar_path = Path(tar_path)
    count = 0
    with tarfile.open(tar_path, "w", format=tarfile.PAX_FORMAT) as tar:
        for root, dirs, files in os.walk(source):
            dirs.sort()
            root_path = Path(root)
            for name in dirs + sorted(files):
                full = root_path / name
                arcname = full.relative_to(source).as_posix()
                tar.add(full, arcname=arcname, recursive=False)
                count += 1

    logger.debug(f"Archived {count} entries from {source} into {tar_path}")
    return tar_path


class Package:
    """An opened package archive bound to a local file.

    The handle is single use: exactly one of :meth:`list` or
    :meth:`install` may be called, after which the archive is closed.
    """

    def __init__(self, path: Path, tar: tarfile.TarFile):
        self._path = path
        self._tar: Optional[tarfile.TarFile] = tar

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "Package":
        """Open the archive at ``path``.

        Raises:
            NotFoundError: If the file does not exist
            InvalidDataError: If the file is not a tar archive
        """
        path = Path(path)
        if not path.is_file():
            raise NotFoundError(f"{path} not found")
        try:
            tar = tarfile.open(path, "r")
        except tarfile.TarError as e:
            raise InvalidDataError(f"{path}: invalid archive: {e}") from e
        return cls(path, tar)

    @property
    def path(self) -> Path:
        """Local archive path."""
        return self._path

    @property
    def consumed(self) -> bool:
        """True once the archive has been listed, installed or closed."""
        return self._tar is None

    def _take(self) -> tarfile.TarFile:
        if self._tar is None:
            raise PackageError(f"{self._path}: archive already consumed")
        tar, self._tar = self._tar, None
        return tar

    def list(self) -> List[str]:
        """Return the member names of the archive without extracting."""
        tar = self._take()
        try:
            return tar.getnames()
        except tarfile.TarError as e:
            raise InvalidDataError(f"{self._path}: invalid archive: {e}") from e
        finally:
            tar.close()

    def install(self, target_root: Union[str, Path]) -> Path:
        """Extract every member into ``target_root``.

        Existing files are overwritten. Members that would land outside
        ``target_root`` (absolute paths, ``..``, escaping links) are
        rejected before anything is written.

        Args:
            target_root: Directory to install into

        Returns:
            The target root

        Raises:
            InvalidDataError: If the archive is corrupt or contains unsafe members
            OSError: If writing to the target fails
        """
        tar = self._take()
        target = Path(target_root)
        try:
            members = tar.getmembers()
            for member in members:
                if member.name.startswith("/") or ".." in Path(member.name).parts:
                    raise InvalidDataError(f"Unsafe path in archive: {member.name}")
            target.mkdir(parents=True, exist_ok=True)
            tar.extractall(target, members=members, filter="data")
        except tarfile.FilterError as e:
            raise InvalidDataError(f"Unsafe member in archive: {e}") from e
        except tarfile.TarError as e:
            raise InvalidDataError(f"{self._path}: invalid archive: {e}") from e
        finally:
            tar.close()

        logger.debug(f"Installed {len(members)} entries from {self._path} into {target}")
        return target

    def close(self) -> None:
        """Close the archive if it has not been consumed."""
        if self._tar is not None:
            self._tar.close()
            self._tar = None

    def __enter__(self) -> "Package":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Package({str(self._path)!r})"
