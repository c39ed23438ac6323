"""Wire models for the Keybase user autocomplete API.

The endpoint answers with an envelope like::

    {
      "status": {"code": 0, "name": "OK"},
      "completions": [
        {"components": {"username": {"val": "alice"},
                        "key_fingerprint": {"val": "..."},
                        "websites": [{"val": "alice.example"}]}}
      ]
    }

Each component is wrapped in a ``{"val": ...}`` object, and any of them may
be missing or null.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pipethis.models.identity import Identity


class KeybaseValue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    val: str | None = None


def _val(value: KeybaseValue | None) -> str:
    if value is None or value.val is None:
        return ""
    return value.val


class KeybaseStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: int = 0
    name: str = ""


class KeybaseComponents(BaseModel):
    model_config = ConfigDict(extra="ignore")

    username: KeybaseValue | None = None
    key_fingerprint: KeybaseValue | None = None
    full_name: KeybaseValue | None = None
    twitter: KeybaseValue | None = None
    github: KeybaseValue | None = None
    hackernews: KeybaseValue | None = None
    reddit: KeybaseValue | None = None
    websites: list[KeybaseValue] | None = None


class KeybaseCompletion(BaseModel):
    model_config = ConfigDict(extra="ignore")

    components: KeybaseComponents = Field(default_factory=KeybaseComponents)

    def to_identity(self) -> Identity:
        c = self.components
        return Identity(
            username=_val(c.username),
            fingerprint=_val(c.key_fingerprint),
            full_name=_val(c.full_name),
            twitter=_val(c.twitter),
            github=_val(c.github),
            hacker_news=_val(c.hackernews),
            reddit=_val(c.reddit),
            sites=tuple(_val(site) for site in c.websites or [] if _val(site)),
        )


class KeybaseResponse(BaseModel):
    """Top-level autocomplete envelope."""

    model_config = ConfigDict(extra="ignore")

    status: KeybaseStatus = Field(default_factory=KeybaseStatus)
    completions: list[KeybaseCompletion] = Field(default_factory=list)
