"""Identity and public key lookup services for script authors."""

from pipethis.lookup.base import KeyService, ServiceName, new_key_service
from pipethis.lookup.keybase import KeybaseService
from pipethis.lookup.local_pgp import LocalPGPService
from pipethis.lookup.selection import resolve_author_key

__all__ = [
    "KeyService",
    "ServiceName",
    "new_key_service",
    "KeybaseService",
    "LocalPGPService",
    "resolve_author_key",
]
