"""Error taxonomy for the provenance pipeline.

Every component raises to its immediate caller; nothing here is retried.
The CLI treats any ``PipethisError`` as fatal for the run.
"""

from __future__ import annotations


class PipethisError(RuntimeError):
    """Base class for every failure the pipeline reports to the operator."""


# -- Input ------------------------------------------------------------------

class InputUnavailableError(PipethisError):
    """Raised when script or signature bytes cannot be acquired."""


class NoInputError(InputUnavailableError):
    """Raised when no location was given and standard input is a terminal."""


class InvalidLocationError(InputUnavailableError):
    """Raised when a location is neither an existing path nor a fetchable URL."""


class TargetNotFoundError(PipethisError):
    """Raised when the executable that should run the script does not exist."""


# -- Keys and lookup services ----------------------------------------------

class KeyRingError(PipethisError):
    """Raised when a public key document cannot be parsed."""


class InvalidQueryError(PipethisError):
    """Raised when an identity query contains characters outside [A-Za-z0-9_.-]."""


class ServiceError(PipethisError):
    """Raised when a lookup service responds with an error or garbage."""


class UnknownServiceError(PipethisError):
    """Raised when a key service name is not recognized."""


class NoMatchesError(PipethisError):
    """Raised when a query matches no identities."""


class NoAuthorMatchError(NoMatchesError):
    """Raised when resolving a script author yields no candidates."""


class AmbiguousMatchError(PipethisError):
    """Raised when exactly one identity is required but a different count was found."""


class AmbiguousKeyError(PipethisError):
    """Raised when key resolution yields anything other than exactly one key."""


class InvalidIdentityError(PipethisError):
    """Raised when an identity lacks the attribute a service resolves keys by."""


# -- Operator selection ------------------------------------------------------

class SelectionCancelledError(PipethisError):
    """Raised when the operator cancels identity selection."""


class SelectionParseError(PipethisError):
    """Raised when the operator's answer is neither a number nor the cancel token."""


class InvalidSelectionError(PipethisError):
    """Raised when the operator picks a number outside the candidate list."""


# -- Signatures ---------------------------------------------------------------

class MissingSourceError(PipethisError):
    """Raised when no signature source is known."""


class SignatureDownloadError(MissingSourceError):
    """Raised when the signature source exists in name only."""


class SignatureVerificationFailedError(PipethisError):
    """Raised when neither signature encoding verifies against the key."""


# -- Script -------------------------------------------------------------------

class AuthorNotFoundError(PipethisError):
    """Raised when the script carries no PIPETHIS_AUTHOR token."""


class ScriptExecutionError(PipethisError):
    """Raised when the target executable exits unsuccessfully."""

    def __init__(self, message: str, returncode: int) -> None:
        super().__init__(message)
        self.returncode = returncode


class InspectionDeclinedError(PipethisError):
    """Raised when the operator declines to run the script after inspecting it."""
