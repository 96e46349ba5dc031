"""Mirror repository client.

Downloads signed package archives from an ordered list of mirrors and
verifies them before handing them out.
"""

from .digest import file_signature, signature
from .repo import Repo
from .transport import Transport

__all__ = [
    "Repo",
    "Transport",
    "file_signature",
    "signature",
]
