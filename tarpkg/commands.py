"""Batch commands behind the ``pkg`` CLI.

Each command processes its names strictly in order. A failure is
reported for that name only and the batch continues.
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import httpx

from .common.errors import PackageError
from .common.logger import get_logger
from .formats.archive import Package
from .repos.repo import Repo
from .upgrade.planner import UpgradePlanner

logger = get_logger("commands")

# Errors reported per package instead of aborting a batch
BATCH_ERRORS = (PackageError, OSError, httpx.HTTPError)


@dataclass
class CommandResult:
    """Outcome of a command for one package name."""

    name: str
    ok: bool
    message: str


def report(line: str) -> None:
    """Write a status line to stderr."""
    print(line, file=sys.stderr)


def run_batch(
    command: str, names: List[str], operation: Callable[[str], str]
) -> List[CommandResult]:
    """Apply ``operation`` to every name and report each outcome.

    Args:
        command: Command name used in status lines
        names: Package names or paths, processed in order
        operation: Performs the work for one name and returns a status message

    Returns:
        One CommandResult per name, in input order
    """
    results = []
    for name in names:
        try:
            message = operation(name)
        except BATCH_ERRORS as e:
            logger.debug(f"{command} {name} failed", exc_info=True)
            report(f"pkg: {command}: {name}: failed: {e}")
            results.append(CommandResult(name, False, str(e)))
            continue
        report(f"pkg: {command}: {name}: {message}")
        results.append(CommandResult(name, True, message))
    return results


def run_clean_cmd(repo: Repo, packages: List[str]) -> List[CommandResult]:
    """Remove extracted package directories from the cache."""
    return run_batch("clean", packages, lambda p: f"cleaned {repo.clean(p)}")


def run_create_cmd(repo: Repo, packages: List[str]) -> List[CommandResult]:
    """Build signed archives from local package directories."""
    return run_batch("create", packages, lambda p: f"created {repo.create(p)}")


def run_extract_cmd(repo: Repo, packages: List[str]) -> List[CommandResult]:
    """Fetch packages and unpack them into the cache."""
    return run_batch("extract", packages, lambda p: f"extracted to {repo.extract(p)}")


def run_fetch_cmd(repo: Repo, packages: List[str]) -> List[CommandResult]:
    """Download and verify packages without installing them."""

    def fetch(name: str) -> str:
        with repo.fetch(name) as package:
            return f"fetched {package.path}"

    return run_batch("fetch", packages, fetch)


def run_install_cmd(
    repo: Repo,
    packages: List[str],
    install_root: str = "/",
    cwd: Optional[Path] = None,
) -> List[CommandResult]:
    """Install packages into ``install_root``.

    A name ending in ``.tar`` is a local archive relative to ``cwd`` and is
    installed as is; any other name is fetched and verified first.
    """

    def install(name: str) -> str:
        if name.endswith(".tar"):
            package = Package.from_path((cwd or Path.cwd()) / name)
        else:
            package = repo.fetch(name)
        package.install(install_root)
        return "succeeded"

    return run_batch("install", packages, install)


def run_list_cmd(
    repo: Repo,
    packages: List[str],
    output: Callable[[str], None] = print,
) -> List[CommandResult]:
    """Print the contents of packages."""

    def list_package(name: str) -> str:
        for entry in repo.fetch(name).list():
            output(entry)
        return "succeeded"

    return run_batch("list", packages, list_package)


def run_sign_cmd(repo: Repo, files: List[str]) -> List[CommandResult]:
    """Print the signature of local files."""
    return run_batch("sign", files, repo.signature)


def run_upgrade_cmd(planner: UpgradePlanner) -> bool:
    """Upgrade installed packages.

    Returns:
        True if the upgrade ran to completion (including a cancelled one)
    """
    try:
        planner.run()
    except (*BATCH_ERRORS, EOFError) as e:
        logger.debug("upgrade failed", exc_info=True)
        report(f"pkg: upgrade: failed: {e}")
        return False
    report("pkg: upgrade: succeeded")
    return True
