"""Shared test fixtures for pipethis."""

from __future__ import annotations

import io
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest
from pgpy import PGPKey, PGPMessage, PGPUID
from pgpy.constants import (
    CompressionAlgorithm,
    HashAlgorithm,
    KeyFlags,
    PubKeyAlgorithm,
    SymmetricKeyAlgorithm,
)
from rich.console import Console

from pipethis.config import PipethisConfig


def _make_key(name: str, email: str) -> PGPKey:
    key = PGPKey.new(PubKeyAlgorithm.RSAEncryptOrSign, 2048)
    uid = PGPUID.new(name, email=email)
    key.add_uid(
        uid,
        usage={KeyFlags.Sign, KeyFlags.Certify},
        hashes=[HashAlgorithm.SHA256],
        ciphers=[SymmetricKeyAlgorithm.AES256],
        compression=[CompressionAlgorithm.Uncompressed],
    )
    return key


# ---------------------------------------------------------------------------
# Keys (session scoped)
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def alice_key() -> PGPKey:
    """Private key for the author ``alice``."""
    return _make_key("Alice Example", "alice@example.com")


@pytest.fixture(scope="session")
def bob_key() -> PGPKey:
    """Private key for an unrelated author ``bob``."""
    return _make_key("Bob Builder", "bob@example.org")


@pytest.fixture
def gnupg_home(tmp_path: Path, alice_key: PGPKey, bob_key: PGPKey) -> Path:
    """A GnuPG home whose binary pubring.gpg holds alice's and bob's keys."""
    home = tmp_path / "gnupg"
    home.mkdir()
    (home / "pubring.gpg").write_bytes(
        bytes(alice_key.pubkey) + bytes(bob_key.pubkey)
    )
    return home


@pytest.fixture
def config(tmp_path: Path, gnupg_home: Path) -> PipethisConfig:
    """Settings pointing at the test keyring and never at the real network."""
    return PipethisConfig(
        home=tmp_path,
        gnupg_home=gnupg_home,
        lookup_with="local",
        keybase_autocomplete_url="https://keybase.test/_/api/1.0/user/autocomplete.json",
        keybase_key_url="https://keybase.test/{username}/key.asc",
        http_timeout=5.0,
    )


@pytest.fixture
def scratch_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Redirect ``tempfile`` into an empty directory we can inspect."""
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(scratch))
    return scratch


@pytest.fixture
def quiet_console() -> Console:
    """A Rich console that writes into memory."""
    return Console(file=io.StringIO(), width=100)


# ---------------------------------------------------------------------------
# Signing helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def sign_detached() -> Callable[..., bytes]:
    """Factory fixture: detached signature over *data*, binary or armored."""

    def _sign(key: PGPKey, data: bytes, *, armored: bool = False) -> bytes:
        signature = key.sign(data)
        if armored:
            return str(signature).encode("ascii")
        return bytes(signature)

    return _sign


@pytest.fixture
def clearsign() -> Callable[[PGPKey, str], bytes]:
    """Factory fixture: a clearsigned document wrapping *text*."""

    def _clearsign(key: PGPKey, text: str) -> bytes:
        message = PGPMessage.new(text, cleartext=True)
        message |= key.sign(message)
        return str(message).encode("utf-8")

    return _clearsign
