"""Unit tests for the PGP bridge — key rings, detached and clearsigned signatures."""

from __future__ import annotations

import pytest
from pgpy import PGPSignature

from pipethis.bridge.pgp_bridge import (
    KeyRing,
    SignatureError,
    decode_clearsign,
    encode_armored_signature,
    identities,
    key_id,
    parse_key_ring,
    verify_armored_detached,
    verify_detached,
)
from pipethis.errors import KeyRingError

SCRIPT = b"# PIPETHIS_AUTHOR alice\necho hello\n"


@pytest.fixture
def alice_ring(alice_key) -> KeyRing:
    return parse_key_ring(str(alice_key.pubkey).encode("ascii"))


# ---------------------------------------------------------------------------
# Key rings
# ---------------------------------------------------------------------------


class TestParseKeyRing:
    def test_armored_single_key(self, alice_key, alice_ring):
        assert len(alice_ring) == 1
        assert key_id(next(iter(alice_ring))) == key_id(alice_key)

    def test_binary_keyring_with_two_keys(self, alice_key, bob_key):
        ring = parse_key_ring(bytes(alice_key.pubkey) + bytes(bob_key.pubkey))
        assert len(ring) == 2
        assert {key_id(k) for k in ring} == {key_id(alice_key), key_id(bob_key)}

    def test_empty_document_rejected(self):
        with pytest.raises(KeyRingError):
            parse_key_ring(b"")

    def test_garbage_rejected(self):
        with pytest.raises(KeyRingError):
            parse_key_ring(b"this is not a key")

    def test_binary_noise_without_key_packets_rejected(self):
        with pytest.raises(KeyRingError, match="Could not read key ring"):
            parse_key_ring(b"\x00\x01 not a keyring")

    def test_keys_by_id(self, alice_key, alice_ring):
        wanted = int(key_id(alice_key), 16)
        assert len(alice_ring.keys_by_id(wanted)) == 1
        assert alice_ring.keys_by_id(wanted ^ 1) == []

    def test_identities(self, alice_key):
        assert identities(alice_key) == ["Alice Example <alice@example.com>"]

    def test_key_id_is_sixteen_hex_digits(self, alice_key):
        kid = key_id(alice_key)
        assert len(kid) == 16
        int(kid, 16)


# ---------------------------------------------------------------------------
# Detached signatures
# ---------------------------------------------------------------------------


class TestVerifyDetached:
    def test_binary_signature_verifies(self, alice_key, alice_ring, sign_detached):
        signature = sign_detached(alice_key, SCRIPT)
        signer = verify_detached(alice_ring, SCRIPT, signature)
        assert key_id(signer) == key_id(alice_key)

    def test_armored_signature_verifies(self, alice_key, alice_ring, sign_detached):
        signature = sign_detached(alice_key, SCRIPT, armored=True)
        signer = verify_armored_detached(alice_ring, SCRIPT, signature)
        assert key_id(signer) == key_id(alice_key)

    def test_binary_check_rejects_armor(self, alice_key, alice_ring, sign_detached):
        signature = sign_detached(alice_key, SCRIPT, armored=True)
        with pytest.raises(SignatureError):
            verify_detached(alice_ring, SCRIPT, signature)

    def test_armored_check_rejects_binary(self, alice_key, alice_ring, sign_detached):
        signature = sign_detached(alice_key, SCRIPT)
        with pytest.raises(SignatureError):
            verify_armored_detached(alice_ring, SCRIPT, signature)

    def test_wrong_key_fails(self, bob_key, alice_ring, sign_detached):
        signature = sign_detached(bob_key, SCRIPT)
        with pytest.raises(SignatureError, match="No key in the ring"):
            verify_detached(alice_ring, SCRIPT, signature)

    def test_modified_message_fails(self, alice_key, alice_ring, sign_detached):
        signature = sign_detached(alice_key, SCRIPT)
        with pytest.raises(SignatureError):
            verify_detached(alice_ring, SCRIPT.replace(b"hello", b"hellO"), signature)

    def test_empty_signature_fails(self, alice_ring):
        with pytest.raises(SignatureError, match="empty"):
            verify_detached(alice_ring, SCRIPT, b"")


# ---------------------------------------------------------------------------
# Clearsigned documents
# ---------------------------------------------------------------------------


class TestClearsign:
    def test_plain_content_is_not_clearsigned(self):
        assert decode_clearsign(b"echo hello\n") is None

    def test_broken_envelope_is_not_clearsigned(self):
        assert decode_clearsign(b"-----BEGIN PGP SIGNED MESSAGE-----\nnope\n") is None

    def test_splits_payload_and_signature(self, alice_key, clearsign):
        text = "# PIPETHIS_AUTHOR alice\n\necho this is my file"
        payload, signature = decode_clearsign(clearsign(alice_key, text))

        assert payload == text.encode("utf-8")
        assert signature.signer.upper() == key_id(alice_key)

    def test_armored_signature_reparses_to_the_same_packet(self, alice_key, clearsign):
        _, signature = decode_clearsign(clearsign(alice_key, "echo hi"))
        armored = encode_armored_signature(signature)

        assert armored.startswith(b"-----BEGIN PGP SIGNATURE-----")
        reparsed = PGPSignature.from_blob(armored)
        assert bytes(reparsed) == bytes(signature)

    def test_extracted_signature_verifies_payload(self, alice_key, alice_ring, clearsign):
        text = "# PIPETHIS_AUTHOR alice\necho hi"
        payload, signature = decode_clearsign(clearsign(alice_key, text))
        signer = verify_armored_detached(
            alice_ring, payload, encode_armored_signature(signature)
        )
        assert key_id(signer) == key_id(alice_key)
