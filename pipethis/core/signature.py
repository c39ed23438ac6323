"""Detached signatures — locate, download, and verify against a key ring.

The signature for a script lives next to the script's temporary copy
(``<temp file>.sig``).  For clearsigned scripts that file already exists
after acquisition; otherwise it is downloaded lazily from the signature
source, which defaults to ``<script location>.sig``.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import BinaryIO

import httpx

from pipethis.bridge.pgp_bridge import (
    KeyRing,
    SignatureError,
    key_id,
    verify_armored_detached,
    verify_detached,
)
from pipethis.core.fetch import DEFAULT_TIMEOUT, get_file
from pipethis.core.script import Script
from pipethis.errors import (
    InputUnavailableError,
    MissingSourceError,
    SignatureDownloadError,
    SignatureVerificationFailedError,
)

logger = logging.getLogger(__name__)

SIGNATURE_HINT = "(do you need to set --signature?)"


class Signature:
    """The PGP signature to be verified against a key ring and ``Script``.

    Parameters
    ----------
    key:
        Key ring holding the author's public key.
    script:
        The script this signature covers.  Not owned.
    source:
        Explicit signature location.  Empty means "derive from the script".
    filename:
        Override for the local signature path; defaults to the script's
        ``signature_name``.
    """

    def __init__(
        self,
        key: KeyRing | None,
        script: Script | None,
        source: str = "",
        *,
        filename: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._key = key
        self._script = script
        self._source = source or ""
        if filename is None:
            filename = script.signature_name if script is not None else ""
        self._filename = filename
        self._client = client
        self._timeout = timeout

    @property
    def name(self) -> str:
        """Path of the local file holding the signature."""
        return self._filename

    @property
    def source(self) -> str:
        """Original location of the signature.

        Defaults to ``<script source>.sig``.  Clearsigned and piped scripts
        have no default: the former carry their own signature and the latter
        have no location to derive one from.
        """
        script = self._script
        if self._source or script is None or script.is_clearsigned or script.is_piped:
            return self._source

        self._source = script.source + ".sig"
        return self._source

    def download(self) -> None:
        """Copy the signature from its source into ``name``.

        A clearsigned script's signature is already local, so this is a
        no-op for those.

        Raises
        ------
        MissingSourceError
            If no source is known.
        SignatureDownloadError
            If the source cannot be opened.
        """
        if self._script is not None and self._script.is_clearsigned:
            return

        source = self.source
        if not source:
            raise MissingSourceError("The signature source location is missing")
        if not self.name:
            raise InputUnavailableError("No local destination for the signature")

        try:
            body = get_file(source, client=self._client, timeout=self._timeout)
        except InputUnavailableError as exc:
            raise SignatureDownloadError(
                f"Couldn't open the signature source file at {source}"
            ) from exc

        with body, open(self.name, "wb") as file:
            shutil.copyfileobj(body, file)
        logger.debug("Signature %s saved to %s", source, self.name)

    def body(self) -> BinaryIO:
        """Open ``name`` for reading, downloading it first if necessary."""
        path = Path(self.name) if self.name else None
        if path is None or not path.exists() or path.stat().st_size == 0:
            try:
                self.download()
            except MissingSourceError as exc:
                raise type(exc)(f"{exc} {SIGNATURE_HINT}") from exc
            except InputUnavailableError as exc:
                raise InputUnavailableError(f"{exc} {SIGNATURE_HINT}") from exc

        return open(self.name, "rb")

    def verify(self) -> None:
        """Check the signature against the key ring and the script body.

        The signature is tried as a binary packet first, then as an
        ASCII-armored block.

        Raises
        ------
        SignatureVerificationFailedError
            If neither encoding verifies.
        """
        if self._key is None or self._script is None:
            raise SignatureVerificationFailedError(
                "Nothing to verify: a key ring and a script are both required"
            )

        with self._script.body() as signed, self.body() as signature:
            message = signed.read()
            try:
                signer = verify_detached(self._key, message, signature.read())
            except SignatureError as exc:
                logger.debug("Binary signature check failed: %s", exc)
                signature.seek(0)
                try:
                    signer = verify_armored_detached(
                        self._key, message, signature.read()
                    )
                except SignatureError as armored_exc:
                    raise SignatureVerificationFailedError(
                        "Failed to verify signature"
                    ) from armored_exc

        logger.debug("Signature made by key %s", key_id(signer))

    def cleanup(self) -> None:
        """Remove the local signature file."""
        if self.name:
            Path(self.name).unlink(missing_ok=True)
