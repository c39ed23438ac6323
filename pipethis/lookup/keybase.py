"""Keybase key service — identity directory lookups over HTTPS.

Queries go to the public autocomplete endpoint; keys come from each user's
``/<username>/key.asc`` document.  Query strings are checked against a
restrictive character set before any request is built, so nothing the
script author controls can be smuggled into the lookup URL.
"""

from __future__ import annotations

import logging
import re

import httpx
from pydantic import ValidationError

from pipethis.bridge.pgp_bridge import KeyRing, parse_key_ring
from pipethis.config import KEYBASE_AUTOCOMPLETE_URL, KEYBASE_KEY_URL
from pipethis.errors import (
    AmbiguousKeyError,
    InvalidQueryError,
    NoMatchesError,
    ServiceError,
)
from pipethis.models.identity import Identity
from pipethis.models.keybase import KeybaseResponse

logger = logging.getLogger(__name__)

QUERY_PATTERN = re.compile(r"[A-Za-z0-9_.\-]+")


def validate_query(query: str) -> str:
    """Return *query* unchanged if it is safe to send to Keybase.

    Raises
    ------
    InvalidQueryError
        If *query* is empty or contains anything outside ``[A-Za-z0-9_.-]``.
    """
    if not QUERY_PATTERN.fullmatch(query):
        raise InvalidQueryError(f"Invalid user requested: {query!r}")
    return query


class KeybaseService:
    """``KeyService`` backed by https://keybase.io.

    Parameters
    ----------
    autocomplete_url:
        User search endpoint; receives the query as ``?q=``.
    key_url:
        Public key URL template with a ``{username}`` placeholder.
    client:
        Optional ``httpx.Client`` to send requests with.
    timeout:
        Per-request timeout in seconds when no client is supplied.
    """

    def __init__(
        self,
        *,
        autocomplete_url: str = KEYBASE_AUTOCOMPLETE_URL,
        key_url: str = KEYBASE_KEY_URL,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._autocomplete_url = autocomplete_url
        self._key_url = key_url
        self._client = client
        self._timeout = timeout

    def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        try:
            if self._client is None:
                response = httpx.get(
                    url, params=params, timeout=self._timeout, follow_redirects=True
                )
            else:
                response = self._client.get(url, params=params, follow_redirects=True)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ServiceError(f"Keybase request to {url} failed: {exc}") from exc
        return response

    def lookup(self, query: str) -> bytes:
        """Fetch the raw autocomplete document for *query*."""
        validate_query(query)
        return self._get(self._autocomplete_url, params={"q": query}).content

    def parse(self, body: bytes) -> KeybaseResponse:
        """Decode an autocomplete document, rejecting error statuses."""
        try:
            lookup = KeybaseResponse.model_validate_json(body)
        except ValidationError as exc:
            raise ServiceError(f"Malformed Keybase response: {exc}") from exc

        if lookup.status.code != 0:
            raise ServiceError(f"Bad status code: {lookup.status.name}")

        return lookup

    def matches(self, query: str) -> list[Identity]:
        """Find the Keybase users matching *query* in any of their details.

        Usernames, social handles, and key fingerprints all count.  Keybase
        caps the result list at ten.
        """
        lookup = self.parse(self.lookup(query))

        users = [completion.to_identity() for completion in lookup.completions]
        users = [user for user in users if not user.is_empty]
        if not users:
            raise NoMatchesError(f"No Keybase users match {query!r}")

        logger.debug("Keybase returned %d match(es) for %r", len(users), query)
        return users

    def resolve_key(self, identity: Identity) -> KeyRing:
        """Fetch the public key of one Keybase user.

        Raises
        ------
        InvalidQueryError
            If the identity's username is unusable.
        AmbiguousKeyError
            If the key document holds anything but exactly one key.
        """
        username = validate_query(identity.username)
        response = self._get(self._key_url.format(username=username))

        ring = parse_key_ring(response.content)
        if len(ring) != 1:
            raise AmbiguousKeyError(
                f"{len(ring)} keys returned for {username}; expected exactly one"
            )

        return ring
