"""Upgrade planning for installed packages."""

from .planner import (
    UpgradeCandidate,
    UpgradePlan,
    UpgradePlanner,
    VersionError,
    compare_versions,
)

__all__ = [
    "UpgradeCandidate",
    "UpgradePlan",
    "UpgradePlanner",
    "VersionError",
    "compare_versions",
]
