"""Exception taxonomy for the composer core.

Registry errors are raised synchronously to the caller. Completion errors
are raised by collaborators and recovered inside the orchestrator, which
turns them into a fallback assistant turn.
"""

from __future__ import annotations


class ComposerError(Exception):
    """Base class for all composer errors."""


# ---------------------------------------------------------------------------
# Section registry
# ---------------------------------------------------------------------------

class RegistryInvariantError(ComposerError):
    """A registry edit would break one of its invariants."""


class DuplicateIdError(RegistryInvariantError):
    def __init__(self, section_id: str) -> None:
        super().__init__(f"Section id already exists: {section_id!r}")
        self.section_id = section_id


class LastSectionError(RegistryInvariantError):
    def __init__(self, message: str = "At least one section must remain") -> None:
        super().__init__(message)


class UnknownSectionError(ComposerError, KeyError):
    def __init__(self, section_id: str) -> None:
        super().__init__(f"Unknown section: {section_id!r}")
        self.section_id = section_id

    def __str__(self) -> str:
        return self.args[0]


# ---------------------------------------------------------------------------
# Request lifecycle
# ---------------------------------------------------------------------------

class RequestPendingError(ComposerError):
    def __init__(self, section_id: str) -> None:
        super().__init__(f"A request for section {section_id!r} is already in flight")
        self.section_id = section_id


class MissingCredentialError(ComposerError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"No API key configured for provider {provider!r}")
        self.provider = provider


class CompletionError(ComposerError):
    """The completion collaborator could not produce a usable result."""


class TransportError(CompletionError):
    """Network/HTTP failure or agent exception while calling the collaborator."""


class MalformedResponseError(CompletionError):
    """The collaborator answered, but the payload failed validation."""
