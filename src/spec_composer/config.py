"""Configuration loader and LLM config builder.

Reads project settings from a YAML config file with ``${ENV_VAR}``
interpolation and builds AG2 ``llm_config`` dicts for the two supported
model families.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .credentials import PROVIDER_ENV_VARS
from .models import MODEL_PROVIDERS, ProjectConfig, ProviderCredentials

load_dotenv()

# ---------------------------------------------------------------------------
# YAML loading with ${ENV_VAR} interpolation
# ---------------------------------------------------------------------------

_ENV_RE = re.compile(r"\$\{([^}]+)\}")


def _resolve_env_vars(value: Any) -> Any:
    """Recursively resolve ``${ENV_VAR}`` references in strings."""
    if isinstance(value, str):
        def _replace(m: re.Match) -> str:
            return os.environ.get(m.group(1), "")
        return _ENV_RE.sub(_replace, value)
    if isinstance(value, dict):
        return {k: _resolve_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_vars(v) for v in value]
    return value


def apply_provider_fallbacks(config: ProjectConfig) -> ProjectConfig:
    """Fill empty provider keys from well-known env vars and normalise base URLs."""
    for provider_id, env_name in PROVIDER_ENV_VARS.items():
        provider = getattr(config.providers, provider_id)
        if not provider.api_key:
            provider.api_key = os.getenv(env_name, "")
        provider.base_url = provider.base_url.rstrip("/")
    return config


def load_config(config_path: str | Path) -> ProjectConfig:
    """Load a ``ProjectConfig`` from a YAML file.

    Environment variables referenced as ``${VAR_NAME}`` are resolved.
    Empty provider keys fall back to ``ANTHROPIC_API_KEY`` / ``OPENAI_API_KEY``.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path) as f:
        raw = yaml.safe_load(f) or {}

    resolved = _resolve_env_vars(raw)
    config = ProjectConfig.model_validate(resolved)
    return apply_provider_fallbacks(config)


# ---------------------------------------------------------------------------
# LLM config builder
# ---------------------------------------------------------------------------

def _build_single_entry(model: str, config: ProjectConfig, api_key: str) -> dict[str, Any]:
    """Build a single AG2 config_list entry for the ``claude`` or ``gpt`` family."""
    provider_id = MODEL_PROVIDERS[model]
    provider = getattr(config.providers, provider_id)
    entry: dict[str, Any] = {
        "model": getattr(config.models, model),
        "api_key": api_key,
    }
    if provider_id == "anthropic":
        entry["api_type"] = "anthropic"
        entry["max_tokens"] = config.max_tokens
    if provider.base_url:
        entry["base_url"] = provider.base_url
    return entry


def build_model_llm_config(
    model: str,
    config: ProjectConfig,
    credentials: ProviderCredentials | None = None,
) -> dict[str, Any]:
    """Return an AG2-compatible ``llm_config`` dict for *model*.

    Keys forwarded with the request (*credentials*) win over the keys in
    ``config.providers``.
    """
    if model not in MODEL_PROVIDERS:
        raise ValueError(f"Unknown model {model!r}; expected one of {', '.join(MODEL_PROVIDERS)}")
    provider_id = MODEL_PROVIDERS[model]
    api_key = ""
    if credentials is not None:
        api_key = getattr(credentials, provider_id) or ""
    if not api_key:
        api_key = getattr(config.providers, provider_id).api_key

    entry = _build_single_entry(model, config, api_key)
    return {
        "config_list": [entry],
        "timeout": config.timeout,
        "seed": config.seed,
    }
