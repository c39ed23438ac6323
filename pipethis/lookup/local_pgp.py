"""Local GnuPG key service — identities from a public keyring on disk."""

from __future__ import annotations

import logging
from functools import cached_property
from pathlib import Path

from pipethis.bridge.pgp_bridge import KeyRing, identities, key_id, parse_key_ring
from pipethis.config import PipethisConfig
from pipethis.errors import (
    AmbiguousKeyError,
    InvalidIdentityError,
    KeyRingError,
    NoMatchesError,
)
from pipethis.models.identity import Identity

logger = logging.getLogger(__name__)

RING_FILENAME = "pubring.gpg"


def keyring_location(home: Path | None = None, gnupg_home: Path | None = None) -> Path:
    """``$GNUPGHOME/pubring.gpg`` if set, else ``$HOME/.gnupg/pubring.gpg``."""
    if gnupg_home is not None:
        return Path(gnupg_home) / RING_FILENAME
    if home is None:
        home = Path.home()
    return Path(home) / ".gnupg" / RING_FILENAME


def is_match(query: str, user: Identity) -> bool:
    """Case-insensitive substring match on fingerprint and identity strings."""
    needle = query.upper()
    if needle in user.fingerprint.upper():
        return True
    return any(needle in email.upper() for email in user.emails)


class LocalPGPService:
    """``KeyService`` backed by a local GnuPG public keyring.

    The keyring file must exist and be non-empty when the service is
    created; it is parsed on first use.

    Raises
    ------
    FileNotFoundError
        If the keyring file does not exist.
    KeyRingError
        If the keyring file is empty.
    """

    def __init__(self, *, home: Path | None = None, gnupg_home: Path | None = None) -> None:
        self._ringfile = keyring_location(home, gnupg_home)

        info = self._ringfile.stat()
        if info.st_size == 0:
            raise KeyRingError(f"Public keyring {self._ringfile} is empty")

    @classmethod
    def from_config(cls, config: PipethisConfig) -> LocalPGPService:
        return cls(home=config.home, gnupg_home=config.gnupg_home)

    @property
    def ringfile(self) -> Path:
        return self._ringfile

    @cached_property
    def ring(self) -> KeyRing | None:
        """The parsed keyring, or ``None`` if it could not be loaded."""
        try:
            return parse_key_ring(self._ringfile.read_bytes())
        except (OSError, KeyRingError) as exc:
            logger.warning("Could not load keyring %s: %s", self._ringfile, exc)
            return None

    def matches(self, query: str) -> list[Identity]:
        """Find the keys whose ID or user IDs contain *query*."""
        ring = self.ring
        if ring is None:
            raise KeyRingError("No key ring loaded")

        users = []
        for key in ring:
            user = Identity(fingerprint=key_id(key), emails=tuple(identities(key)))
            if is_match(query, user):
                users.append(user)

        if not users:
            raise NoMatchesError(f"No keys in {self._ringfile} match {query!r}")

        return users

    def resolve_key(self, identity: Identity) -> KeyRing:
        """Return the single key whose 64-bit key ID is the identity's fingerprint."""
        try:
            wanted = int(identity.fingerprint, 16)
        except ValueError as exc:
            raise InvalidIdentityError(
                f"Not a hexadecimal key ID: {identity.fingerprint!r}"
            ) from exc
        if not 0 <= wanted < 2**64:
            raise InvalidIdentityError(
                f"Not a 64-bit key ID: {identity.fingerprint!r}"
            )

        ring = self.ring
        if ring is None:
            raise KeyRingError("No key ring loaded")

        keys = ring.keys_by_id(wanted)
        if len(keys) != 1:
            raise AmbiguousKeyError(
                f"Found {len(keys)} keys with ID {wanted:016X}; expected exactly one"
            )

        return KeyRing(keys)
