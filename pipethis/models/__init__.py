"""pipethis data models — all Pydantic v2."""

from pipethis.models.identity import Identity
from pipethis.models.keybase import (
    KeybaseCompletion,
    KeybaseComponents,
    KeybaseResponse,
    KeybaseStatus,
    KeybaseValue,
)

__all__ = [
    "Identity",
    "KeybaseCompletion",
    "KeybaseComponents",
    "KeybaseResponse",
    "KeybaseStatus",
    "KeybaseValue",
]
