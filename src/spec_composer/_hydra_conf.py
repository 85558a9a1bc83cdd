"""Hydra structured config dataclasses.

These mirror the Pydantic ``ProjectConfig`` for Hydra schema validation.
At runtime the Hydra DictConfig is converted to ``ProjectConfig`` via
``cli._to_project_config()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from hydra.core.config_store import ConfigStore


@dataclass
class ProviderConf:
    api_key: str = ""
    base_url: str = ""


@dataclass
class ProvidersConf:
    anthropic: ProviderConf = field(default_factory=lambda: ProviderConf(
        api_key="${oc.env:ANTHROPIC_API_KEY,''}",
    ))
    openai: ProviderConf = field(default_factory=lambda: ProviderConf(
        api_key="${oc.env:OPENAI_API_KEY,''}",
    ))


@dataclass
class ModelConf:
    claude: str = "claude-3-5-sonnet-20240620"
    gpt: str = "gpt-4"


@dataclass
class SectionConf:
    id: str = ""
    label: str = ""
    placeholder: str = "Type your message here..."
    guidance_prompt: str = ""


@dataclass
class SpcConf:
    # --- Dispatch + CLI-only fields ---
    mode: str = "chat"
    verbose: bool = False
    quiet: bool = False
    document_file: str | None = None
    output_file: str | None = None

    # --- ProjectConfig fields (1:1 mapping) ---
    project_name: str = "spec-composer"
    model: str = "claude"
    models: ModelConf = field(default_factory=ModelConf)
    providers: ProvidersConf = field(default_factory=ProvidersConf)

    transport: str = "agent"
    endpoint: str = "http://localhost:3001/api/chat"
    authoring: str = "document"

    # Empty list means the built-in default sections.
    sections: list[SectionConf] = field(default_factory=list)

    timeout: int = 120
    seed: int = 42
    max_tokens: int = 1024


# Keys present in SpcConf that are NOT part of ProjectConfig.
CLI_ONLY_KEYS = frozenset({
    "mode", "verbose", "quiet", "document_file", "output_file",
})


def register_configs() -> None:
    """Register the structured config schema with Hydra's ConfigStore."""
    cs = ConfigStore.instance()
    cs.store(name="spc_schema", node=SpcConf)
