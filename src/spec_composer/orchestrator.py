"""Request orchestrator — the lifecycle of one user message.

    idle ──begin──▶ sending ──resolve──▶ succeeded ──▶ idle
                       │
                       └────fail────▶ failed ─────▶ idle

``submit`` runs the whole cycle inline. Front ends that run the completion
call elsewhere use ``begin`` and later deliver ``resolve`` / ``fail`` back on
the thread that owns the session. At most one request per section is in
flight; requests for different sections may overlap. Removing a section
detaches its in-flight request, whose eventual resolution is discarded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .completion import CompletionClient, parse_completion_payload
from .credentials import CredentialProvider, resolve_credentials
from .errors import (
    CompletionError,
    MalformedResponseError,
    MissingCredentialError,
    RequestPendingError,
    UnknownSectionError,
)
from .models import (
    MODEL_PROVIDERS,
    AuthoringMode,
    CompletionRequest,
    CompletionResult,
    DocumentAuthored,
    RequestState,
    Role,
    Turn,
)
from .registry import SectionRegistry
from .session import ComposerSession

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Sorry, there was an error processing your message. Please try again."

MISSING_CREDENTIAL_MESSAGE = (
    "No API key is configured for {provider}. Add your {provider} API key to the "
    "settings and send your message again."
)

_PROVIDER_NAMES = {"anthropic": "Anthropic", "openai": "OpenAI"}


def missing_credential_message(provider_id: str) -> str:
    return MISSING_CREDENTIAL_MESSAGE.format(provider=_PROVIDER_NAMES.get(provider_id, provider_id))


@dataclass
class PendingRequest:
    """One user message and what became of it."""
    section_id: str
    message: str
    generation: int = 0
    state: RequestState = RequestState.IDLE
    request: CompletionRequest | None = None
    result: CompletionResult | None = None
    error: Exception | None = None


class RequestOrchestrator:
    """Drives user messages through the completion collaborator into the session."""

    def __init__(
        self,
        session: ComposerSession,
        client: CompletionClient,
        credentials: CredentialProvider,
        *,
        model: str = "claude",
    ) -> None:
        if model not in MODEL_PROVIDERS:
            raise ValueError(f"Unknown model {model!r}")
        self.session = session
        self.client = client
        self.credentials = credentials
        self.model = model
        self._in_flight: dict[str, PendingRequest] = {}
        session.registry.subscribe(self._on_registry_changed)

    # -- state ---------------------------------------------------------------

    @property
    def loading(self) -> bool:
        return bool(self._in_flight)

    def in_flight(self, section_id: str) -> PendingRequest | None:
        return self._in_flight.get(section_id)

    # -- lifecycle -----------------------------------------------------------

    def submit(self, message: str, section_id: str) -> PendingRequest:
        """Send *message* to *section_id* and reconcile the outcome."""
        pending = self.begin(message, section_id)
        if pending.state is not RequestState.SENDING or pending.request is None:
            return pending
        try:
            result = self.client.complete(pending.request)
        except CompletionError as e:
            self.fail(pending, e)
        except Exception as e:
            logger.exception("Completion client crashed for section %r", section_id)
            self.fail(pending, e)
        else:
            self.resolve(pending, result)
        return pending

    def begin(self, message: str, section_id: str) -> PendingRequest:
        """Idle → sending: record the user turn and build the outbound request.

        Ends directly in ``failed`` (with a guidance turn, no network call)
        when the model's provider key is missing.
        """
        if not message or not message.strip():
            raise ValueError("Message is empty")
        session = self.session
        if section_id not in session.registry:
            raise UnknownSectionError(section_id)
        if section_id in self._in_flight:
            raise RequestPendingError(section_id)

        pending = PendingRequest(
            section_id=section_id,
            message=message,
            generation=session.generation(section_id),
            state=RequestState.SENDING,
        )
        session.append_turn(section_id, Turn(role=Role.USER, content=message))
        session.select_section(section_id)
        self._set_in_flight(pending)

        provider_id = MODEL_PROVIDERS[self.model]
        if not self.credentials.get_credential(provider_id):
            logger.warning("Missing %s credential; request for %r not sent", provider_id, section_id)
            pending.error = MissingCredentialError(provider_id)
            self._append_notice(section_id, missing_credential_message(provider_id))
            self._finish(pending, RequestState.FAILED)
            return pending

        pending.request = CompletionRequest(
            prompt=message,
            section=section_id,
            model=self.model,
            all_messages=session.store.snapshot(),
            current_document=session.document if session.mode is AuthoringMode.DOCUMENT else None,
            credentials=resolve_credentials(self.credentials),
            guidance=session.registry.get(section_id).guidance_prompt or None,
        )
        logger.info("Sending message for section %r", section_id)
        return pending

    def resolve(self, pending: PendingRequest, result: CompletionResult) -> None:
        """Sending → succeeded: write the reply, update the document, follow a hand-off."""
        self._check_sending(pending)
        session = self.session
        if self._is_stale(pending):
            self._discard_stale(pending)
            return

        pending.result = result
        session.append_turn(
            pending.section_id,
            Turn(role=Role.ASSISTANT, content=result.message, confidence=result.confidence),
        )

        if isinstance(result, DocumentAuthored):
            session.hold_document(result.document)
            target = result.section
            if target != pending.section_id:
                if target in session.registry:
                    logger.info("Hand-off from %r to %r", pending.section_id, target)
                    session.select_section(target)
                else:
                    logger.warning("Ignoring hand-off to unknown section %r", target)
                    session.callbacks.on_warning(f"Collaborator suggested unknown section {target!r}")
        else:
            session.release_document()

        self._finish(pending, RequestState.SUCCEEDED)

    def resolve_payload(self, pending: PendingRequest, payload: Any) -> None:
        """Resolve from a raw wire payload, failing the request if it is malformed."""
        try:
            result = parse_completion_payload(payload, requested_section=pending.section_id)
        except MalformedResponseError as e:
            self.fail(pending, e)
            return
        self.resolve(pending, result)

    def fail(self, pending: PendingRequest, error: Exception) -> None:
        """Sending → failed: apologise in the conversation; the document stays as it was."""
        self._check_sending(pending)
        session = self.session
        if self._is_stale(pending):
            self._discard_stale(pending)
            return

        logger.warning("Request for section %r failed: %s", pending.section_id, error)
        pending.error = error
        self._append_notice(pending.section_id, FALLBACK_MESSAGE)
        session.callbacks.on_error(str(error))
        self._finish(pending, RequestState.FAILED)

    # -- helpers -------------------------------------------------------------

    def _append_notice(self, section_id: str, content: str) -> None:
        self.session.append_turn(section_id, Turn(role=Role.ASSISTANT, content=content, notice=True))

    def _check_sending(self, pending: PendingRequest) -> None:
        if pending.state is not RequestState.SENDING:
            raise ValueError(f"Request for {pending.section_id!r} is {pending.state.value}, not sending")

    def _is_stale(self, pending: PendingRequest) -> bool:
        return (
            pending.section_id not in self.session.registry
            or pending.generation != self.session.generation(pending.section_id)
        )

    def _discard_stale(self, pending: PendingRequest) -> None:
        logger.warning("Section %r was removed; discarding its response", pending.section_id)
        pending.error = UnknownSectionError(pending.section_id)
        self._finish(pending, RequestState.FAILED)

    def _on_registry_changed(self, registry: SectionRegistry) -> None:
        for section_id, pending in list(self._in_flight.items()):
            if self._is_stale(pending):
                logger.info("Detached in-flight request for removed section %r", section_id)
                self._release(pending)

    def _set_in_flight(self, pending: PendingRequest) -> None:
        was_loading = self.loading
        self._in_flight[pending.section_id] = pending
        if not was_loading:
            self.session.callbacks.on_loading_changed(True)

    def _release(self, pending: PendingRequest) -> None:
        if self._in_flight.get(pending.section_id) is not pending:
            return
        del self._in_flight[pending.section_id]
        if not self.loading:
            self.session.callbacks.on_loading_changed(False)

    def _finish(self, pending: PendingRequest, state: RequestState) -> None:
        pending.state = state
        self._release(pending)
