"""Author identity model — a candidate returned by a key service."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

_ROW = "{:>15}: {}"


class Identity(BaseModel):
    """An author's identity, as reported by a key service.

    Every attribute is optional.  An identity with no attributes at all is
    never a usable match; services drop those before returning results.

    Examples
    --------
    >>> Identity(username="alice", github="alice").is_empty
    False
    >>> Identity().is_empty
    True
    """

    model_config = ConfigDict(frozen=True)

    username: str = ""
    fingerprint: str = ""
    full_name: str = ""
    twitter: str = ""
    github: str = ""
    hacker_news: str = ""
    reddit: str = ""
    sites: tuple[str, ...] = ()
    emails: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        """Whether no attribute carries a value."""
        return not any(
            (
                self.username,
                self.fingerprint,
                self.full_name,
                self.twitter,
                self.github,
                self.hacker_news,
                self.reddit,
                any(self.sites),
                any(self.emails),
            )
        )

    def describe(self) -> str:
        """Return every identity detail as aligned ``label: value`` rows."""
        rows = [
            _ROW.format("Identifier", self.username),
            _ROW.format("Name", self.full_name),
            _ROW.format("Twitter", self.twitter),
            _ROW.format("Github", self.github),
            _ROW.format("Hacker News", self.hacker_news),
            _ROW.format("Reddit", self.reddit),
            _ROW.format("Fingerprint", self.fingerprint),
        ]
        rows.extend(_ROW.format("Site", site) for site in self.sites)
        rows.extend(_ROW.format("Email", email) for email in self.emails)
        return "\n".join(rows)

    def __str__(self) -> str:
        return self.describe()
