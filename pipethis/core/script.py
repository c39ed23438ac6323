"""Script artifacts — acquire, split, inspect, and run an untrusted script.

A ``Script`` owns a private temporary copy of the script bytes.  The
original source (a local path, a URL, or standard input) is read exactly
once, copied into the temporary file, and never touched again.

Clearsigned scripts are split on acquisition: the temporary file receives
the payload (with carriage returns stripped) and the signature is written
next to it as ``<temp file>.sig``, where ``Signature`` expects to find it.
"""

from __future__ import annotations

import logging
import os
import re
import shlex
import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO, TextIO

import httpx
from rich.console import Console
from rich.prompt import Confirm

from pipethis.bridge.pgp_bridge import decode_clearsign, encode_armored_signature
from pipethis.core.fetch import DEFAULT_TIMEOUT, get_file
from pipethis.errors import (
    AuthorNotFoundError,
    InputUnavailableError,
    NoInputError,
    ScriptExecutionError,
)

logger = logging.getLogger(__name__)

AUTHOR_PATTERN = re.compile(r".*PIPETHIS_AUTHOR\s+(\w+)", re.ASCII)
TEMP_PREFIX = "pipethis-"


def parse_token(pattern: re.Pattern[str], lines: TextIO) -> str:
    """Return the first capture of *pattern* in *lines*, or ``""``."""
    for line in lines:
        match = pattern.search(line)
        if match:
            return match.group(1)
    return ""


class Script:
    """A shell script to be inspected, verified, and run.

    Use ``Script.from_location()`` or ``Script.from_stream()`` to acquire
    one; the constructor only wraps an already materialized file.

    Parameters
    ----------
    source:
        Original location of the script.  Empty means standard input.
    filename:
        Path of the temporary copy.
    clearsigned:
        Whether a signature was split out of the acquired bytes.
    """

    def __init__(
        self,
        source: str = "",
        filename: str = "",
        *,
        clearsigned: bool = False,
        author: str | None = None,
    ) -> None:
        self._source = source
        self._filename = filename
        self._clearsigned = clearsigned
        self._author = author

    # -- Acquisition ----------------------------------------------------------

    @classmethod
    def from_location(
        cls,
        location: str,
        *,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Script:
        """Copy the script at *location* (local path or URL) to a temp file."""
        body = get_file(location, client=client, timeout=timeout)
        with body:
            return cls._materialize(location, body)

    @classmethod
    def from_stream(cls, stream: BinaryIO) -> Script:
        """Copy a piped script from *stream* (usually standard input).

        Raises
        ------
        NoInputError
            If *stream* is an interactive terminal rather than a pipe.
        """
        if stream.isatty():
            raise NoInputError(
                "No script location given and nothing piped to standard input"
            )
        return cls._materialize("", stream)

    @classmethod
    def _materialize(cls, source: str, body: BinaryIO) -> Script:
        fd, filename = tempfile.mkstemp(prefix=TEMP_PREFIX)
        script = cls(source=source, filename=filename)

        try:
            with os.fdopen(fd, "wb") as file:
                shutil.copyfileobj(body, file)

            contents = Path(filename).read_bytes()
            if not contents:
                raise InputUnavailableError(
                    f"The script from {source or 'standard input'} is empty"
                )

            payload = script.detach_signature(contents)
            if script.is_clearsigned:
                Path(filename).write_bytes(payload)
        except BaseException:
            script.cleanup()
            raise

        return script

    def detach_signature(self, contents: bytes) -> bytes:
        """Split a clearsigned *contents* into payload and signature file.

        Unsigned contents are returned as-is.  For a clearsigned document the
        armored signature is written to ``signature_name`` and the payload is
        returned without its envelope and without carriage returns.
        """
        decoded = decode_clearsign(contents)
        if decoded is None:
            return contents

        payload, signature = decoded
        self._clearsigned = True
        Path(self.signature_name).write_bytes(encode_armored_signature(signature))
        logger.info("Found an inline signature in %s", self.source or "standard input")

        return payload.replace(b"\r", b"")

    # -- Accessors ------------------------------------------------------------

    @property
    def name(self) -> str:
        """Path of the temporary file holding the script."""
        return self._filename

    @property
    def source(self) -> str:
        """Original location of the script (local or remote)."""
        return self._source

    @property
    def signature_name(self) -> str:
        """Where a detached or extracted signature for this script lives."""
        return self._filename + ".sig"

    @property
    def is_piped(self) -> bool:
        return self._source == ""

    @property
    def is_clearsigned(self) -> bool:
        return self._clearsigned

    def body(self) -> BinaryIO:
        """Open the temporary copy for reading."""
        return open(self.name, "rb")

    def author(self) -> str:
        """Return the PIPETHIS_AUTHOR token, scanning the script at most once.

        Raises
        ------
        AuthorNotFoundError
            If no line carries the token.
        """
        if self._author:
            return self._author

        with open(self.name, encoding="utf-8", errors="replace") as lines:
            author = parse_token(AUTHOR_PATTERN, lines)

        if not author:
            raise AuthorNotFoundError(f"Author not found in {self.name}")

        self._author = author
        return author

    # -- Operator interaction ---------------------------------------------------

    def inspect(
        self,
        inspect: bool,
        editor: str,
        *,
        console: Console | None = None,
        stream: TextIO | None = None,
    ) -> bool:
        """Open the script in *editor* and ask whether to continue.

        Skipped (returns ``True``) when no inspection was requested or the
        script came from standard input.  The editor's exit status is
        ignored; only an explicit "no" stops the run.
        """
        if not inspect or self.is_piped:
            return True

        logger.info("Opening %s in %s", self.name, editor)
        try:
            subprocess.run([*shlex.split(editor), self.name], check=False)
        except OSError as exc:
            logger.warning("Could not start editor %r: %s", editor, exc)

        return Confirm.ask(
            f"Continue processing {self.name}?",
            default=True,
            console=console,
            stream=stream,
        )

    def run(self, target: str, args: Sequence[str] = ()) -> None:
        """Run the temporary script with *target*.

        The first element of *args* is the original script location; it is
        replaced with the temporary filename before *target* sees it.

        Raises
        ------
        ScriptExecutionError
            If *target* exits with a non-zero status.
        """
        argv = [self.name, *list(args)[1:]]
        logger.info("Running %s with %s", self.name, target)

        result = subprocess.run([target, *argv], check=False)
        if result.returncode != 0:
            raise ScriptExecutionError(
                f"{target} exited with status {result.returncode}",
                result.returncode,
            )

    # -- Cleanup ----------------------------------------------------------------

    def cleanup(self) -> None:
        """Remove the temporary copy and any signature split out of it."""
        if not self._filename:
            return
        for path in (self.name, self.signature_name):
            Path(path).unlink(missing_ok=True)

    def __enter__(self) -> Script:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()
