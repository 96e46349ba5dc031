"""Package signatures.

A signature is the SHA3-512 digest of an archive rendered as uppercase
hexadecimal, two characters per byte.
"""

import hashlib
from pathlib import Path
from typing import Union

CHUNK_SIZE = 8192
SIGNATURE_LENGTH = hashlib.sha3_512().digest_size * 2


def render_digest(digest: bytes) -> str:
    """Render raw digest bytes as a fixed-width hex string."""
    return "".join(f"{b:02X}" for b in digest)


def signature(data: bytes) -> str:
    """Compute the signature of an in-memory byte string."""
    return render_digest(hashlib.sha3_512(data).digest())


def file_signature(path: Union[str, Path]) -> str:
    """Compute the signature of a file's contents.

    Args:
        path: File to hash

    Returns:
        Signature string

    Raises:
        OSError: If the file cannot be read
    """
    hasher = hashlib.sha3_512()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            hasher.update(chunk)
    return render_digest(hasher.digest())


def read_signature(path: Union[str, Path]) -> str:
    """Read an expected signature from a ``.sig`` file, whitespace trimmed."""
    return Path(path).read_text().strip()
