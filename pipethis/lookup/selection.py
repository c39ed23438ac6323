"""Author resolution — from a query to exactly one public key ring."""

from __future__ import annotations

import logging
from typing import TextIO

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.text import Text

from pipethis.bridge.pgp_bridge import KeyRing
from pipethis.errors import (
    AmbiguousMatchError,
    InvalidSelectionError,
    NoAuthorMatchError,
    SelectionCancelledError,
    SelectionParseError,
)
from pipethis.lookup.base import KeyService
from pipethis.models.identity import Identity

logger = logging.getLogger(__name__)

CANCEL = "q"


def choose_match(
    matches: list[Identity],
    *,
    console: Console | None = None,
    stream: TextIO | None = None,
) -> Identity:
    """Show every match and ask the operator to pick one by number."""
    if console is None:
        console = Console()

    logger.info("Found %d results", len(matches))
    console.print()
    for idx, user in enumerate(matches):
        console.print(
            Panel(
                Text(user.describe()),
                title=f"[bold]{idx}[/bold]",
                title_align="left",
                expand=False,
            )
        )

    response = Prompt.ask(
        f"Enter the number to use, or '{CANCEL}' to cancel",
        default=CANCEL,
        show_default=False,
        console=console,
        stream=stream,
    ).strip()

    if response.lower() == CANCEL:
        raise SelectionCancelledError("No match selected")

    try:
        choice = int(response)
    except ValueError as exc:
        raise SelectionParseError(f"Not a match number: {response!r}") from exc

    if not 0 <= choice < len(matches):
        raise InvalidSelectionError(f"Invalid match selected: {choice}")

    console.print()
    return matches[choice]


def choose_single_match(matches: list[Identity]) -> Identity:
    """Return the only match, without asking anybody."""
    if not matches:
        raise NoAuthorMatchError(
            "Found 0 author matches; need exactly 1 when reading from standard input"
        )
    if len(matches) != 1:
        raise AmbiguousMatchError(
            f"Found {len(matches)} author matches; "
            "need exactly 1 when reading from standard input"
        )
    return matches[0]


def resolve_author_key(
    service: KeyService,
    query: str,
    force_single: bool = False,
    *,
    console: Console | None = None,
    stream: TextIO | None = None,
) -> KeyRing:
    """Look up *query* in *service* and return the chosen author's key ring.

    With *force_single* the lookup must produce exactly one identity; it is
    used when the script arrives on standard input and nobody can be asked.
    Otherwise every candidate is shown in full so the operator can confirm
    the author is who they expected.
    """
    matches = service.matches(query)
    if not matches:
        raise NoAuthorMatchError(f"No author matches found for {query}")

    if force_single:
        match = choose_single_match(matches)
    else:
        match = choose_match(matches, console=console, stream=stream)

    ring = service.resolve_key(match)
    logger.info("Verifying your script against\n%s", match.describe())

    return ring
