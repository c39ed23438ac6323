"""Key service protocol and factory.

A key service turns a free-text author query into candidate identities and
one chosen identity into a public key ring.  Two implementations exist:
``KeybaseService`` (remote directory) and ``LocalPGPService`` (local GnuPG
keyring).  Callers depend only on the ``KeyService`` protocol.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, runtime_checkable

import httpx

from pipethis.bridge.pgp_bridge import KeyRing
from pipethis.config import PipethisConfig
from pipethis.errors import UnknownServiceError
from pipethis.lookup.keybase import KeybaseService
from pipethis.lookup.local_pgp import LocalPGPService
from pipethis.models.identity import Identity


@runtime_checkable
class KeyService(Protocol):
    """Protocol that every identity and public key service implements."""

    def matches(self, query: str) -> list[Identity]:
        """Return every identity matching *query*.

        Implementations raise ``NoMatchesError`` rather than returning an
        empty list.
        """
        ...

    def resolve_key(self, identity: Identity) -> KeyRing:
        """Return exactly one public key for an identity from ``matches()``."""
        ...


class ServiceName(str, Enum):
    KEYBASE = "keybase"
    LOCAL = "local"


def new_key_service(
    name: str,
    from_pipe: bool = False,
    *,
    config: PipethisConfig | None = None,
    client: httpx.Client | None = None,
) -> KeyService:
    """Create the key service requested by *name*.

    Scripts read from a pipe always use the local keyring, whatever was
    requested: there is no terminal to confirm a remote identity with.
    """
    if config is None:
        config = PipethisConfig()
    if from_pipe:
        name = ServiceName.LOCAL.value

    if name == ServiceName.KEYBASE.value:
        return KeybaseService(
            autocomplete_url=config.keybase_autocomplete_url,
            key_url=config.keybase_key_url,
            client=client,
            timeout=config.http_timeout,
        )
    if name == ServiceName.LOCAL.value:
        return LocalPGPService.from_config(config)

    raise UnknownServiceError(f"Unrecognized key service: {name!r}")
