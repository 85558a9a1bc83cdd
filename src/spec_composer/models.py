"""Pydantic models for the spec composer."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class AuthoringMode(str, Enum):
    """Which compiler variant renders a section's text.

    ``messages`` joins the user's own turns; ``document`` takes the latest
    assistant turn and also sends the current document to the collaborator.
    """
    MESSAGES = "messages"
    DOCUMENT = "document"


class RequestState(str, Enum):
    IDLE = "idle"
    SENDING = "sending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


ModelName = Literal["claude", "gpt"]

# Which credential a model needs.
MODEL_PROVIDERS: dict[str, str] = {
    "claude": "anthropic",
    "gpt": "openai",
}


# ---------------------------------------------------------------------------
# Sections and turns
# ---------------------------------------------------------------------------

class Section(BaseModel):
    """A named slice of the document with its own conversation history."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., pattern=r"^[a-z]+$", description="Stable lowercase identifier, letters only")
    label: str = Field(..., description="Display name")
    placeholder: str = Field(default="Type your message here...", description="Input hint")
    guidance_prompt: str = Field(
        default="",
        alias="prompt",
        description="Instructions for the collaborator about this section",
    )


class Turn(BaseModel):
    """One message in a section's history."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    notice: bool = Field(
        default=False,
        exclude=True,
        description="Status message (apology, missing key) that is never document content",
    )


DEFAULT_SECTIONS: tuple[Section, ...] = (
    Section(
        id="description",
        label="Description",
        placeholder="Type your message here...",
        guidance_prompt=(
            "Help the user clarify their programming task and describe it clearly and thoroughly."
        ),
    ),
    Section(
        id="acceptance",
        label="Acceptance Criteria",
        placeholder="Type your acceptance criteria here...",
        guidance_prompt=(
            "Help the user define clear acceptance criteria. Guide them through edge cases, "
            "user scenarios and specific requirements."
        ),
    ),
    Section(
        id="assumptions",
        label="Assumptions",
        placeholder="Type your assumptions here...",
        guidance_prompt=(
            "Help the user identify the assumptions behind the task: technical constraints, "
            "dependencies and environmental factors."
        ),
    ),
    Section(
        id="technical",
        label="Technical Approach",
        placeholder="Type your technical approach here...",
        guidance_prompt=(
            "Help the user plan the technical approach: architecture, design patterns and "
            "implementation details."
        ),
    ),
)

NEW_SECTION_PLACEHOLDER = "Type your message here..."
NEW_SECTION_PROMPT = "Enter instructions for the AI about this section..."


# ---------------------------------------------------------------------------
# Completion collaborator contract
# ---------------------------------------------------------------------------

class ProviderCredentials(BaseModel):
    """Resolved provider keys forwarded with a request."""
    anthropic: str | None = None
    openai: str | None = None


class CompletionRequest(BaseModel):
    """Outbound payload sent to the completion collaborator."""
    model_config = ConfigDict(populate_by_name=True)

    prompt: str = Field(..., description="Raw user message")
    section: str = Field(..., description="Addressed section id")
    model: ModelName | None = Field(default=None)
    all_messages: dict[str, list[Turn]] | None = Field(default=None, alias="allMessages")
    current_document: str | None = Field(default=None, alias="currentDocument")
    credentials: ProviderCredentials | None = Field(default=None)
    guidance: str | None = Field(default=None, description="Guidance prompt of the addressed section")

    def to_wire(self) -> dict:
        """JSON-ready dict using the wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DocumentAuthored(BaseModel):
    """Collaborator returned a full merged document plus a chat message."""
    kind: Literal["document"] = "document"
    message: str = Field(..., min_length=1)
    document: str = Field(..., min_length=1)
    section: str
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    ai: str = ""


class MessageAuthored(BaseModel):
    """Collaborator returned only a chat message; the document is recomputed."""
    kind: Literal["message"] = "message"
    message: str = Field(..., min_length=1)
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    ai: str = ""


CompletionResult = DocumentAuthored | MessageAuthored


# ---------------------------------------------------------------------------
# Project configuration (loaded from YAML or Hydra)
# ---------------------------------------------------------------------------

class ModelConfig(BaseModel):
    """Concrete model names behind the ``claude`` / ``gpt`` choices."""
    claude: str = Field(default="claude-3-5-sonnet-20240620")
    gpt: str = Field(default="gpt-4")


class ProviderConfig(BaseModel):
    """Connection settings for one provider."""
    api_key: str = Field(default="", description="API key (or ${ENV_VAR})")
    base_url: str = Field(default="", description="Optional endpoint override")


class ProvidersConfig(BaseModel):
    anthropic: ProviderConfig = Field(default_factory=ProviderConfig)
    openai: ProviderConfig = Field(default_factory=ProviderConfig)


class ProjectConfig(BaseModel):
    """Full project configuration loaded from config.yaml."""
    project_name: str = Field(default="spec-composer")
    model: ModelName = Field(default="claude", description="Model family used for completions")
    models: ModelConfig = Field(default_factory=ModelConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)

    transport: Literal["agent", "http"] = Field(
        default="agent",
        description="'agent' calls the model through AG2, 'http' posts to an /api/chat endpoint",
    )
    endpoint: str = Field(default="http://localhost:3001/api/chat", description="Used by the http transport")
    authoring: AuthoringMode = Field(default=AuthoringMode.DOCUMENT)

    sections: list[Section] = Field(default_factory=lambda: list(DEFAULT_SECTIONS))

    timeout: int = Field(default=120, description="LLM / HTTP call timeout in seconds")
    seed: int = Field(default=42, description="LLM seed for reproducibility")
    max_tokens: int = Field(default=1024, description="Completion token limit")


# ---------------------------------------------------------------------------
# Agent replies
# ---------------------------------------------------------------------------

class AuthorReply(BaseModel):
    """JSON object the document-authoring agent is asked to return."""
    section: str = Field(..., description="Section the update applies to")
    document: str = Field(..., description="Complete updated document")
    chatResponse: str = Field(..., description="Conversational explanation of the change")
    confidence: float = Field(..., ge=0.0, le=1.0)
