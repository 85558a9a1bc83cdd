"""Completion collaborator boundary.

Raw responses are resolved exactly once, here, into the tagged
``CompletionResult`` variant; the orchestrator never inspects payload shape
itself.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

import requests
from pydantic import ValidationError

from .errors import MalformedResponseError, TransportError
from .models import CompletionRequest, CompletionResult, DocumentAuthored, MessageAuthored

if TYPE_CHECKING:
    from .models import ProjectConfig

logger = logging.getLogger(__name__)


class CompletionClient(Protocol):
    """Anything that turns a request into a result or raises ``CompletionError``."""

    def complete(self, request: CompletionRequest) -> CompletionResult: ...


def parse_completion_payload(payload: Any, *, requested_section: str) -> CompletionResult:
    """Validate a wire payload into ``DocumentAuthored`` or ``MessageAuthored``.

    A payload carrying ``document`` is document-authored; its ``section``
    defaults to *requested_section* and is lower-cased. Anything that fails
    validation raises ``MalformedResponseError``.
    """
    if not isinstance(payload, Mapping):
        raise MalformedResponseError(f"Expected a JSON object, got {type(payload).__name__}")

    data = dict(payload)
    if data.get("ai") is None:
        data["ai"] = ""
    try:
        if data.get("document") is not None:
            section = data.get("section") or requested_section
            if isinstance(section, str):
                section = section.strip().lower()
            data.update(kind="document", section=section)
            return DocumentAuthored.model_validate(data)
        data["kind"] = "message"
        data.pop("section", None)
        return MessageAuthored.model_validate(data)
    except ValidationError as e:
        raise MalformedResponseError(f"Invalid completion payload: {e}") from e


# ---------------------------------------------------------------------------
# HTTP collaborator
# ---------------------------------------------------------------------------


class HttpCompletionClient:
    """Posts the request contract to a running ``/api/chat`` endpoint."""

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 120,
        session: requests.Session | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.timeout = timeout
        self._session = session or requests.Session()

    def complete(self, request: CompletionRequest) -> CompletionResult:
        try:
            response = self._session.post(self.endpoint, json=request.to_wire(), timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Request to {self.endpoint} failed: {e}") from e

        if not response.ok:
            raise TransportError(f"HTTP error! status: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response is not JSON: {e}") from e

        logger.debug("Completion payload for %r: %s", request.section, payload)
        return parse_completion_payload(payload, requested_section=request.section)


def make_completion_client(config: ProjectConfig) -> CompletionClient:
    """Build the collaborator selected by ``config.transport``."""
    if config.transport == "http":
        return HttpCompletionClient(config.endpoint, timeout=config.timeout)

    from .agents.section_author import AgentCompletionClient

    return AgentCompletionClient(config)
