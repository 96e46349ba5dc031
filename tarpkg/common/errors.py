"""Error types raised by the package manager core.

Filesystem and transport errors (OSError, httpx.HTTPError) are not wrapped;
they propagate unchanged from the call that raised them.
"""


class PackageError(Exception):
    """Base class for package manager errors."""


class NotFoundError(PackageError):
    """A requested file could not be located locally or on any mirror."""


class InvalidDataError(PackageError):
    """Data failed validation (signature, TOML, archive contents, version)."""
