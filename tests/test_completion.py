"""Tests for completion.py — boundary validation and the HTTP collaborator."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from spec_composer.completion import HttpCompletionClient, make_completion_client, parse_completion_payload
from spec_composer.errors import MalformedResponseError, TransportError
from spec_composer.models import CompletionRequest, DocumentAuthored, MessageAuthored, ProjectConfig


class TestParseCompletionPayload:
    def test_document_authored(self):
        result = parse_completion_payload(
            {
                "message": "Updated description",
                "document": "### Description\nWe need login via email",
                "section": "description",
                "confidence": 0.9,
                "ai": "claude",
            },
            requested_section="description",
        )
        assert isinstance(result, DocumentAuthored)
        assert result.confidence == 0.9
        assert result.ai == "claude"

    def test_message_authored(self):
        result = parse_completion_payload(
            {"message": "Sure, tell me more", "ai": "gpt", "section": "description"},
            requested_section="description",
        )
        assert isinstance(result, MessageAuthored)
        assert result.confidence is None

    def test_section_defaults_to_requested(self):
        result = parse_completion_payload({"message": "m", "document": "d"}, requested_section="technical")
        assert result.section == "technical"

    def test_section_lower_cased(self):
        result = parse_completion_payload(
            {"message": "m", "document": "d", "section": " Technical "},
            requested_section="description",
        )
        assert result.section == "technical"

    def test_null_ai_tolerated(self):
        assert parse_completion_payload({"message": "m", "ai": None}, requested_section="x").ai == ""

    @pytest.mark.parametrize("payload", [
        None,
        "just text",
        ["message"],
        {},
        {"message": ""},
        {"message": 42},
        {"message": "m", "confidence": 1.7},
        {"message": "m", "confidence": "high"},
        {"message": "m", "document": ""},
        {"document": "### Description\nx", "section": "description"},
    ])
    def test_malformed(self, payload):
        with pytest.raises(MalformedResponseError):
            parse_completion_payload(payload, requested_section="description")


def _response(status: int = 200, payload=None, json_error: bool = False) -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    if json_error:
        response.json.side_effect = ValueError("Expecting value")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def request_model() -> CompletionRequest:
    return CompletionRequest(prompt="We need login", section="description", model="claude", current_document="")


class TestHttpCompletionClient:
    def test_posts_wire_payload(self, request_model):
        session = MagicMock()
        session.post.return_value = _response(payload={"message": "ok", "ai": "claude"})
        client = HttpCompletionClient("http://localhost:3001/api/chat", timeout=5, session=session)

        result = client.complete(request_model)

        assert isinstance(result, MessageAuthored)
        args, kwargs = session.post.call_args
        assert args == ("http://localhost:3001/api/chat",)
        assert kwargs["json"] == {"prompt": "We need login", "section": "description", "model": "claude", "currentDocument": ""}
        assert kwargs["timeout"] == 5

    def test_non_2xx_is_transport_error(self, request_model):
        session = MagicMock()
        session.post.return_value = _response(status=500, payload={"error": "boom"})
        client = HttpCompletionClient("http://x/api/chat", session=session)
        with pytest.raises(TransportError, match="500"):
            client.complete(request_model)

    def test_connection_error_is_transport_error(self, request_model):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("refused")
        client = HttpCompletionClient("http://x/api/chat", session=session)
        with pytest.raises(TransportError):
            client.complete(request_model)

    def test_non_json_body_is_malformed(self, request_model):
        session = MagicMock()
        session.post.return_value = _response(json_error=True)
        client = HttpCompletionClient("http://x/api/chat", session=session)
        with pytest.raises(MalformedResponseError):
            client.complete(request_model)

    def test_missing_fields_are_malformed(self, request_model):
        session = MagicMock()
        session.post.return_value = _response(payload={"ai": "claude"})
        client = HttpCompletionClient("http://x/api/chat", session=session)
        with pytest.raises(MalformedResponseError):
            client.complete(request_model)


class TestMakeCompletionClient:
    def test_http(self):
        client = make_completion_client(ProjectConfig(transport="http", endpoint="http://h/api/chat", timeout=7))
        assert isinstance(client, HttpCompletionClient)
        assert client.endpoint == "http://h/api/chat"
        assert client.timeout == 7

    def test_agent(self):
        from spec_composer.agents.section_author import AgentCompletionClient

        assert isinstance(make_completion_client(ProjectConfig()), AgentCompletionClient)
