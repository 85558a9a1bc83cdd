"""Shared test fixtures."""

from __future__ import annotations

import pytest

from spec_composer.credentials import StaticCredentialProvider
from spec_composer.errors import CompletionError
from spec_composer.models import DEFAULT_SECTIONS, CompletionRequest, MessageAuthored, Section, Turn
from spec_composer.orchestrator import RequestOrchestrator
from spec_composer.session import ComposerSession
from spec_composer.store import ConversationStore


class FakeCompletionClient:
    """Records requests; answers with a fixed result or raises a fixed error."""

    def __init__(self, result=None, error: CompletionError | None = None) -> None:
        self.result = result or MessageAuthored(message="ok", ai="fake")
        self.error = error
        self.requests: list[CompletionRequest] = []

    def complete(self, request: CompletionRequest):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.result


class RecordingCallbacks:
    """SessionCallbacks that keep every event for assertions."""

    def __init__(self) -> None:
        self.turns: list[tuple[str, Turn]] = []
        self.documents: list[str] = []
        self.active: list[str] = []
        self.loading: list[bool] = []
        self.warnings: list[str] = []
        self.errors: list[str] = []

    def on_turn_appended(self, section_id, turn):
        self.turns.append((section_id, turn))

    def on_document_updated(self, document):
        self.documents.append(document)

    def on_active_section_changed(self, section_id):
        self.active.append(section_id)

    def on_loading_changed(self, loading):
        self.loading.append(loading)

    def on_warning(self, message):
        self.warnings.append(message)

    def on_error(self, message):
        self.errors.append(message)


@pytest.fixture
def sections() -> list[Section]:
    return list(DEFAULT_SECTIONS)


@pytest.fixture
def store() -> ConversationStore:
    return ConversationStore()


@pytest.fixture
def callbacks() -> RecordingCallbacks:
    return RecordingCallbacks()


@pytest.fixture
def session(callbacks) -> ComposerSession:
    return ComposerSession(callbacks=callbacks)


@pytest.fixture
def credentials() -> StaticCredentialProvider:
    return StaticCredentialProvider({"anthropic": "sk-ant-test", "openai": "sk-openai-test"})


@pytest.fixture
def fake_client() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def orchestrator(session, fake_client, credentials) -> RequestOrchestrator:
    return RequestOrchestrator(session, fake_client, credentials, model="claude")
