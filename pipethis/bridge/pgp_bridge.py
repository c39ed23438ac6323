"""PGP bridge — the single boundary to the OpenPGP library.

Bridge boundary
---------------
Everything that touches OpenPGP packets goes through this module, backed by
PGPy (``pgpy``):

1. **Key rings**: ``parse_key_ring()`` reads binary (``pubring.gpg``) or
   ASCII-armored public key documents into a ``KeyRing``.

2. **Detached signatures**: ``verify_detached()`` checks a binary signature
   packet, ``verify_armored_detached()`` an ASCII-armored one.  Both return
   the signing key on success and raise ``SignatureError`` otherwise.

3. **Clearsigned documents**: ``decode_clearsign()`` splits a
   ``-----BEGIN PGP SIGNED MESSAGE-----`` document into its payload and
   signature; ``encode_armored_signature()`` writes a signature back out in
   armored form.

Verification is fail-closed: malformed input, an unknown signer, and a bad
signature all raise.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from pgpy import PGPKey, PGPMessage, PGPSignature

from pipethis.errors import KeyRingError

logger = logging.getLogger(__name__)

ARMOR_MARKER = b"-----BEGIN PGP"
CLEARSIGN_MARKER = b"-----BEGIN PGP SIGNED MESSAGE-----"


class SignatureError(RuntimeError):
    """Raised when a detached signature cannot be parsed or does not verify."""


# ---------------------------------------------------------------------------
# Key rings
# ---------------------------------------------------------------------------


class KeyRing:
    """An ordered collection of primary public keys.

    Parameters
    ----------
    keys:
        Primary ``PGPKey`` objects.  Subkeys travel with their primary.
    """

    def __init__(self, keys: Iterable[PGPKey] = ()) -> None:
        self._keys = list(keys)

    def __iter__(self) -> Iterator[PGPKey]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def keys_by_id(self, key_id: int) -> list[PGPKey]:
        """Return every primary key whose own or subkey ID equals *key_id*."""
        wanted = f"{key_id:016X}"
        return [key for key in self._keys if wanted in _key_ids(key)]

    def signer(self, key_id: str) -> PGPKey | None:
        """Return the key holding the (sub)key that issued a signature."""
        wanted = key_id.upper()
        for key in self._keys:
            if wanted in _key_ids(key):
                return key
        return None


def key_id(key: PGPKey) -> str:
    """The 16 hex digit long key ID of a primary key."""
    return str(key.fingerprint.keyid).upper()


def identities(key: PGPKey) -> list[str]:
    """Human-readable ``Name (comment) <email>`` strings for each user ID."""
    result = []
    for uid in key.userids:
        text = uid.name or ""
        if uid.comment:
            text = f"{text} ({uid.comment})"
        if uid.email:
            text = f"{text} <{uid.email}>"
        result.append(text.strip())
    return result


def _key_ids(key: PGPKey) -> set[str]:
    ids = {key_id(key)}
    ids.update(str(sub).upper() for sub in key.subkeys)
    return ids


def parse_key_ring(data: bytes) -> KeyRing:
    """Parse a binary or armored public key document into a ``KeyRing``.

    Raises
    ------
    KeyRingError
        If *data* is empty or is not a readable key document.
    """
    if not data.strip():
        raise KeyRingError("Key document is empty")

    try:
        loaded = PGPKey.from_blob(data)
    except Exception as exc:  # PGPy raises assorted errors on malformed packets
        raise KeyRingError(f"Could not read key ring: {exc}") from exc

    primary, others = loaded if isinstance(loaded, tuple) else (loaded, {})
    # unrecognized packets parse into a key without a fingerprint
    if not primary.fingerprint:
        raise KeyRingError("Could not read key ring: no public key packets found")

    keys: dict[str, PGPKey] = {key_id(primary): primary}
    for other in others.values():
        if other.is_primary and other.fingerprint:
            keys.setdefault(key_id(other), other)

    logger.debug("Loaded %d key(s) from key document.", len(keys))
    return KeyRing(keys.values())


# ---------------------------------------------------------------------------
# Detached signatures
# ---------------------------------------------------------------------------


def _is_armored(data: bytes) -> bool:
    return data.lstrip().startswith(ARMOR_MARKER)


def _load_signature(data: bytes) -> PGPSignature:
    if not data.strip():
        raise SignatureError("Signature is empty")
    try:
        return PGPSignature.from_blob(data)
    except Exception as exc:  # PGPy raises assorted errors on malformed packets
        raise SignatureError(f"Unreadable signature: {exc}") from exc


def _check(ring: KeyRing, message: bytes, signature: PGPSignature) -> PGPKey:
    try:
        signer_id = signature.signer
    except Exception as exc:  # truncated packets fail lazily
        raise SignatureError(f"Unreadable signature: {exc}") from exc
    if not signer_id:
        raise SignatureError("Signature does not name its signer")

    signer = ring.signer(signer_id)
    if signer is None:
        raise SignatureError(
            f"No key in the ring matches signer {signer_id}"
        )

    try:
        verification = signer.verify(message, signature)
    except Exception as exc:  # PGPy raises assorted errors on malformed packets
        raise SignatureError(f"Signature check failed: {exc}") from exc

    if not verification:
        raise SignatureError(f"Bad signature from {key_id(signer)}")

    return signer


def verify_detached(ring: KeyRing, message: bytes, signature: bytes) -> PGPKey:
    """Verify a binary detached *signature* over *message*.

    Returns the signing key.
    """
    if _is_armored(signature):
        raise SignatureError("Signature is ASCII-armored, not binary")
    return _check(ring, message, _load_signature(signature))


def verify_armored_detached(
    ring: KeyRing, message: bytes, signature: bytes
) -> PGPKey:
    """Verify an ASCII-armored detached *signature* over *message*.

    Returns the signing key.
    """
    if not _is_armored(signature):
        raise SignatureError("Signature is not ASCII-armored")
    return _check(ring, message, _load_signature(signature))


# ---------------------------------------------------------------------------
# Clearsigned documents
# ---------------------------------------------------------------------------


def decode_clearsign(data: bytes) -> tuple[bytes, PGPSignature] | None:
    """Split a clearsigned document into ``(payload, signature)``.

    Returns ``None`` when *data* is not a clearsigned document; that is a
    normal outcome, not an error.
    """
    if CLEARSIGN_MARKER not in data:
        return None

    try:
        message = PGPMessage.from_blob(data)
    except Exception as exc:  # PGPy raises assorted errors on malformed armor
        logger.debug("Content looked clearsigned but did not parse: %s", exc)
        return None

    if message.type != "cleartext" or not message.signatures:
        return None

    payload = message.message
    if isinstance(payload, str):
        # PGPy reads byte input as latin-1; reverse that to get the original bytes
        try:
            payload = payload.encode("latin-1")
        except UnicodeEncodeError:
            payload = payload.encode("utf-8")

    return bytes(payload), message.signatures[0]


def encode_armored_signature(signature: PGPSignature) -> bytes:
    """Return *signature* as an ASCII-armored ``PGP SIGNATURE`` block."""
    return str(signature).encode("ascii")
