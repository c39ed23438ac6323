"""Byte acquisition — local paths first, then URLs.

A location that exists on disk is always read from disk, even if it also
looks like a URL.  Only when nothing exists at that path is the string
parsed as a URL and fetched with ``httpx``.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import BinaryIO
from urllib.parse import urlparse

import httpx

from pipethis.errors import InvalidLocationError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def get_file(
    location: str,
    *,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> BinaryIO:
    """Open *location* for reading, trying the local filesystem first.

    Raises
    ------
    InvalidLocationError
        If *location* is neither an existing path nor a fetchable URL.
    """
    body = get_local(location)
    if body is not None:
        return body

    return get_remote(location, client=client, timeout=timeout)


def get_local(location: str) -> BinaryIO | None:
    """Open a local file, or return ``None`` when nothing exists at *location*.

    Raises
    ------
    InvalidLocationError
        If something exists at *location* but cannot be read as a file.
    """
    path = Path(location)
    try:
        if not path.exists():
            return None
    except (OSError, ValueError):
        return None

    if not path.is_file():
        raise InvalidLocationError(f"{location} exists but is not a regular file")

    logger.debug("Reading %s from the local filesystem.", location)
    try:
        return path.open("rb")
    except OSError as exc:
        raise InvalidLocationError(f"Could not open {location}: {exc}") from exc


def get_remote(
    location: str,
    *,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> BinaryIO:
    """Fetch *location* over the network and return its body as a stream."""
    if not urlparse(location).scheme:
        raise InvalidLocationError(f"Invalid URL: {location!r}")

    logger.debug("Fetching %s.", location)
    try:
        if client is None:
            response = httpx.get(location, follow_redirects=True, timeout=timeout)
        else:
            response = client.get(location, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        raise InvalidLocationError(f"Could not fetch {location}: {exc}") from exc

    return io.BytesIO(response.content)
