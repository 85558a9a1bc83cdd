"""SectionAuthor agent — the LLM-backed completion collaborator.

``claude`` runs in document-authoring mode: the agent sees the whole
document and returns it updated, together with a chat reply, as JSON.
``gpt`` runs in message-authoring mode: the section's guidance prompt is
the system message and the plain-text reply becomes the chat message.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from typing import Any

import autogen
from pydantic import ValidationError

from ..completion import parse_completion_payload
from ..config import build_model_llm_config
from ..errors import MalformedResponseError, TransportError
from ..models import (
    AuthorReply,
    CompletionRequest,
    CompletionResult,
    ProjectConfig,
    ProviderCredentials,
    Role,
    Turn,
)
from ..tools.document_compiler import section_heading

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are a project manager helping a tech lead plan a task. The aim is to help
the tech lead brainstorm the task and flesh out a detailed task specification.
You are a JSON-only response AI: respond with a single valid JSON object and no
other text.
"""

DEFAULT_GUIDANCE = "Help the user describe their programming task clearly and thoroughly."

DOCUMENT_PROMPT = """\
You are helping a tech lead refine a task specification document.

CURRENT DOCUMENT STATE:
{document}

The tech lead wants to update the {section} section.
{guidance_block}\
Here is their request:
{prompt}

Respond with ONLY a JSON object with exactly these fields:
{{
    "section": "{section}",
    "document": "<the complete updated document in markdown format>",
    "chatResponse": "<your conversational response explaining what you updated>",
    "confidence": <number between 0 and 1>
}}

Rules for "document":
1. It is the ENTIRE document after applying the requested changes.
2. Keep the current structure and content; change only what was requested.
3. Each section starts with a line "### Sectionid" (one word, letters only).
4. Do not add or remove sections unless asked to.
5. If the request really belongs to another section, update that section and
   put its id in "section".

Rules for "chatResponse":
1. Explain conversationally what you changed and why.
2. If you chose not to make a change, say why.
"""


def _document_from_messages(all_messages: Mapping[str, Sequence[Turn]]) -> str:
    """Rebuild a document from assistant turns when none was sent."""
    blocks = []
    for section_id, turns in all_messages.items():
        content = "\n\n".join(t.content for t in turns if t.role is Role.ASSISTANT and not t.notice)
        if content:
            blocks.append(f"{section_heading(section_id)}\n{content}")
    return "\n\n".join(blocks)


def build_document_prompt(request: CompletionRequest) -> str:
    document = request.current_document
    if not document and request.all_messages:
        document = _document_from_messages(request.all_messages)
    guidance_block = f"Guidance for this section: {request.guidance}\n" if request.guidance else ""
    return DOCUMENT_PROMPT.format(
        document=document or "The document is currently empty.",
        section=request.section,
        guidance_block=guidance_block,
        prompt=request.prompt,
    )


def _extract_text(response: Any) -> str:
    """Extract the reply text from an AG2 chat response, without code fences."""
    if hasattr(response, "summary") and response.summary:
        text = str(response.summary)
    elif hasattr(response, "chat_history") and response.chat_history:
        last = response.chat_history[-1]
        text = last.get("content", "") if isinstance(last, dict) else str(last)
    else:
        text = str(response)

    text = re.sub(r"```(?:json)?\s*", "", text)
    return text.strip()


def parse_author_reply(text: str) -> AuthorReply:
    """Parse the document-authoring JSON reply, tolerating text around the object."""
    if "{" in text and "}" in text:
        text = text[text.find("{"):text.rfind("}") + 1]
    try:
        return AuthorReply.model_validate_json(text)
    except ValidationError as e:
        raise MalformedResponseError(f"Unparseable author reply: {e}") from e


def make_section_author(
    config: ProjectConfig,
    model: str,
    *,
    credentials: ProviderCredentials | None = None,
    guidance: str = "",
) -> autogen.AssistantAgent:
    """Create the SectionAuthor agent for *model*."""
    system_message = SYSTEM_PROMPT if model == "claude" else (guidance or DEFAULT_GUIDANCE)
    return autogen.AssistantAgent(
        name="SectionAuthor",
        system_message=system_message,
        llm_config=build_model_llm_config(model, config, credentials),
    )


class AgentCompletionClient:
    """``CompletionClient`` that answers through a one-turn AG2 chat."""

    def __init__(self, config: ProjectConfig) -> None:
        self.config = config

    def complete(self, request: CompletionRequest) -> CompletionResult:
        model = request.model or self.config.model
        message = build_document_prompt(request) if model == "claude" else request.prompt

        try:
            author = make_section_author(
                self.config,
                model,
                credentials=request.credentials,
                guidance=request.guidance or "",
            )
            orchestrator = autogen.UserProxyAgent(
                name="Composer",
                human_input_mode="NEVER",
                code_execution_config=False,
            )
            response = orchestrator.initiate_chat(author, message=message, max_turns=1)
        except Exception as e:
            logger.warning("SectionAuthor call failed: %s", e)
            raise TransportError(str(e)) from e

        text = _extract_text(response)
        logger.debug("Raw author reply: %s", text)

        if model != "claude":
            return parse_completion_payload(
                {"message": text, "ai": model},
                requested_section=request.section,
            )

        reply = parse_author_reply(text)
        return parse_completion_payload(
            {
                "message": reply.chatResponse,
                "document": reply.document,
                "section": reply.section,
                "confidence": reply.confidence,
                "ai": model,
            },
            requested_section=request.section,
        )
