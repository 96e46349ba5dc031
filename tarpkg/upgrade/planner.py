"""Upgrade planning.

Compares the versions of installed packages with the repository manifest
and applies the resulting upgrades through the repository client.
"""

from contextlib import ExitStack
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

from semver import Version

from ..common.errors import InvalidDataError
from ..common.logger import get_logger
from ..formats.metadata import PackageMetaList
from ..repos.repo import Repo

logger = get_logger("upgrade")

MANIFEST_FILE = "repo.toml"
CONFIRM_PROMPT = "Do you want to upgrade these packages? (Y/n) "
CONFIRM_ANSWERS = ("", "y", "yes")


@dataclass
class UpgradeCandidate:
    """A package whose remote version is newer than the installed one."""

    name: str
    old_version: str
    new_version: str

    def __str__(self) -> str:
        return f"{self.name}: {self.old_version} => {self.new_version}"


@dataclass
class VersionError:
    """A package whose versions could not be compared."""

    name: str
    local_version: str
    remote_version: str

    def __str__(self) -> str:
        return (
            f"{self.name}: version parsing error when comparing "
            f"{self.local_version} and {self.remote_version}"
        )


@dataclass
class UpgradePlan:
    """Result of comparing installed packages against a manifest."""

    upgrades: List[UpgradeCandidate] = field(default_factory=list)
    errors: List[VersionError] = field(default_factory=list)

    @property
    def is_up_to_date(self) -> bool:
        """True when there is nothing to upgrade."""
        return not self.upgrades


def compare_versions(local_version: str, remote_version: str) -> int:
    """Compare two semantic version strings.

    Pre-release versions rank below their release and build metadata is
    ignored. Missing minor or patch components count as zero, so ``1.0``
    equals ``1.0.0``.

    Returns:
        -1, 0 or 1 as ``local_version`` is lower than, equal to or
        greater than ``remote_version``

    Raises:
        InvalidDataError: If either version cannot be parsed
    """
    try:
        local = Version.parse(local_version, optional_minor_and_patch=True)
        remote = Version.parse(remote_version, optional_minor_and_patch=True)
    except ValueError as e:
        raise InvalidDataError(str(e)) from e
    return local.compare(remote)


class UpgradePlanner:
    """Plans and applies upgrades of installed packages.

    Installed packages are discovered from descriptor files in
    ``installed_dir``; the remote versions come from the repository's
    ``repo.toml`` manifest.
    """

    def __init__(
        self,
        repo: Repo,
        installed_dir: Union[str, Path] = "/pkg",
        install_root: Union[str, Path] = "/",
        prompt: Optional[Callable[[str], str]] = None,
        output: Optional[Callable[[str], None]] = None,
    ):
        """Initialize the planner.

        Args:
            repo: Repository client used to sync the manifest and fetch packages
            installed_dir: Directory holding installed package descriptors
            install_root: Root directory packages are installed into
            prompt: Asks the user a question and returns the typed line
            output: Receives report lines (defaults to ``print``)
        """
        self.repo = repo
        self.installed_dir = Path(installed_dir)
        self.install_root = Path(install_root)
        self.prompt = prompt or input
        self.output = output or print

    def load_local(self) -> PackageMetaList:
        """Versions of the installed packages."""
        return PackageMetaList.from_installed(self.installed_dir)

    def load_remote(self) -> PackageMetaList:
        """Sync and parse the repository manifest.

        Raises:
            NotFoundError: If no mirror has the manifest
            InvalidDataError: If the manifest is not valid TOML
        """
        manifest = self.repo.sync(MANIFEST_FILE)
        return PackageMetaList.from_toml(manifest.read_text())

    def plan(self, local: PackageMetaList, remote: PackageMetaList) -> UpgradePlan:
        """Select installed packages with a newer remote version.

        Packages missing from the manifest are compared against an empty
        version, which cannot be parsed and is reported as a version error.
        Version errors never stop planning of the remaining packages.
        """
        result = UpgradePlan()
        for name in sorted(local.packages):
            version = local.packages[name]
            remote_version = remote.packages.get(name, "")
            try:
                cmp = compare_versions(version, remote_version)
            except InvalidDataError:
                error = VersionError(name, version, remote_version)
                logger.debug(str(error))
                result.errors.append(error)
                continue
            if cmp < 0:
                result.upgrades.append(UpgradeCandidate(name, version, remote_version))
        return result

    def apply(self, upgrades: List[UpgradeCandidate]) -> None:
        """Download every upgrade, then install them in order.

        The first failure propagates; packages after it are left alone.
        Archives that were fetched but not installed are closed either way.
        """
        with ExitStack() as stack:
            self.output("Downloading packages")
            packages = []
            for candidate in upgrades:
                package = self.repo.fetch(candidate.name)
                stack.callback(package.close)
                packages.append(package)

            self.output("Installing packages")
            for package in packages:
                package.install(self.install_root)

    def confirm(self) -> bool:
        """Ask the user whether to go ahead with the upgrade."""
        answer = self.prompt(CONFIRM_PROMPT)
        return answer.strip().lower() in CONFIRM_ANSWERS

    def run(self) -> UpgradePlan:
        """Plan upgrades, report them and apply them once confirmed.

        Returns:
            The computed plan
        """
        local = self.load_local()
        remote = self.load_remote()
        plan = self.plan(local, remote)

        for error in plan.errors:
            self.output(str(error))

        if plan.is_up_to_date:
            self.output("All packages are up to date.")
            return plan

        for candidate in plan.upgrades:
            self.output(str(candidate))

        if self.confirm():
            self.apply(plan.upgrades)
        else:
            self.output("Cancelling upgrade.")
        return plan
