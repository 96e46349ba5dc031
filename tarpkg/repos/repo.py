"""Repository client.

Owns the local cache directory and the ordered mirror list, and combines
transport, signatures and archives into the sync/fetch/create/extract/
clean operations.
"""

import shutil
from pathlib import Path
from typing import List, Optional, Union

import httpx

from ..common.config import PkgConfig, build_mirror_list
from ..common.errors import InvalidDataError, NotFoundError
from ..common.logger import get_logger
from ..formats.archive import Package, create_archive
from .digest import file_signature, read_signature
from .transport import Transport

logger = get_logger("repo")


class Repo:
    """Client for a set of package mirrors.

    Every remote file is addressed as ``<mirror>/<target>/<file>`` and
    cached at ``<local>/<file>``. Mirrors are tried in list order and the
    first one that delivers the file wins.
    """

    def __init__(
        self,
        local: Union[str, Path],
        remotes: List[str],
        target: str,
        transport: Optional[Transport] = None,
    ):
        """Initialize repository client.

        Args:
            local: Local cache directory
            remotes: Mirror base URLs in priority order
            target: Target identifier the mirrors are scoped by
            transport: Download transport (a default one is created if None)
        """
        self.local = Path(local)
        self.remotes = [r.rstrip("/") for r in remotes]
        self.target = target
        self.transport = transport or Transport()

    @classmethod
    def from_config(cls, config: PkgConfig, transport: Optional[Transport] = None) -> "Repo":
        """Build a client from loaded configuration.

        Args:
            config: PkgConfig instance
            transport: Optional transport override

        Returns:
            Repo instance
        """
        if transport is None:
            transport = Transport(timeout=config.timeout, show_progress=config.progress)
        return cls(
            local=config.cache_dir,
            remotes=build_mirror_list(config),
            target=config.target,
            transport=transport,
        )

    def add_remote(self, remote: str) -> None:
        """Append a mirror with the lowest priority."""
        self.remotes.append(remote.rstrip("/"))

    def remote_path(self, remote: str, file: str) -> str:
        """URL of ``file`` on the mirror ``remote``."""
        return f"{remote}/{self.target}/{file}"

    def sync(self, file: str) -> Path:
        """Download ``file`` from the first mirror that has it.

        The cached copy is overwritten on success.

        Args:
            file: Path relative to the target directory on the mirror

        Returns:
            Local path of the downloaded file

        Raises:
            NotFoundError: If no mirror could deliver the file
            OSError: If the cache directory cannot be created
        """
        local_path = self.local / file
        local_path.parent.mkdir(parents=True, exist_ok=True)

        if not self.remotes:
            raise NotFoundError("no remote paths")

        last_error: Optional[Exception] = None
        for remote in self.remotes:
            remote_path = self.remote_path(remote, file)
            try:
                self.transport.download(remote_path, local_path)
            except (NotFoundError, httpx.HTTPError) as e:
                logger.warning(f"Mirror {remote} failed for {file}: {e}")
                last_error = e
                continue
            return local_path

        raise NotFoundError(
            f"{file} not found on {len(self.remotes)} remote path(s)"
        ) from last_error

    def signature(self, file: Union[str, Path]) -> str:
        """Compute the signature of a local file.

        Raises:
            OSError: If the file cannot be read
        """
        return file_signature(file)

    def fetch(self, package: str) -> Package:
        """Download and verify a package.

        The signature file is always synced. The archive is only
        downloaded when the cached copy is missing or does not match it.

        Args:
            package: Package name

        Returns:
            Opened, verified package archive

        Raises:
            NotFoundError: If the signature or archive is on no mirror
            InvalidDataError: If the downloaded archive does not match its signature
        """
        sig_path = self.sync(f"{package}.sig")
        expected = read_signature(sig_path)

        tar_path = self.local / f"{package}.tar"
        if tar_path.is_file():
            try:
                cached = self.signature(tar_path)
            except OSError as e:
                logger.debug(f"Cannot read cached {tar_path}: {e}")
                cached = None
            if cached == expected:
                logger.info(f"Already downloaded {package}")
                return Package.from_path(tar_path)

        tar_path = self.sync(f"{package}.tar")

        if self.signature(tar_path) != expected:
            raise InvalidDataError(f"{package} not valid")

        return Package.from_path(tar_path)

    def create(self, package: Union[str, Path]) -> Path:
        """Build ``<package>.tar`` and ``<package>.sig`` from a directory.

        Args:
            package: Local directory holding the package tree

        Returns:
            Path of the written archive

        Raises:
            NotFoundError: If ``package`` is not a directory
        """
        source = Path(package)
        if not source.is_dir():
            raise NotFoundError(f"{package} not found")
        if source.name in ("", ".."):
            source = source.resolve()

        tar_path = source.with_name(f"{source.name}.tar")
        sig_path = source.with_name(f"{source.name}.sig")

        create_archive(source, tar_path)
        sig_path.write_text(self.signature(tar_path) + "\n")

        logger.debug(f"Created {tar_path} and {sig_path}")
        return tar_path

    def extract(self, package: str) -> Path:
        """Fetch a package and unpack it into ``<local>/<package>``.

        Returns:
            The directory the package was extracted to
        """
        tar_dir = self.local / package
        tar_dir.mkdir(parents=True, exist_ok=True)
        self.fetch(package).install(tar_dir)
        return tar_dir

    def clean(self, package: str) -> Path:
        """Remove the extracted directory ``<local>/<package>``.

        Raises:
            OSError: If the directory does not exist or cannot be removed
        """
        tar_dir = self.local / package
        shutil.rmtree(tar_dir)
        return tar_dir
