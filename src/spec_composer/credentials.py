"""Credential collaborators: read-only provider-key lookup."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Protocol

from .models import ProjectConfig, ProviderCredentials

# Environment variables consulted when the config carries no key.
PROVIDER_ENV_VARS: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
}


class CredentialProvider(Protocol):
    def get_credential(self, provider_id: str) -> str | None: ...


class StaticCredentialProvider:
    """Credentials from a plain mapping; empty values count as missing."""

    def __init__(self, credentials: Mapping[str, str | None] | None = None) -> None:
        self._credentials = dict(credentials or {})

    def get_credential(self, provider_id: str) -> str | None:
        return self._credentials.get(provider_id) or None


class ConfigCredentialProvider:
    """Credentials from ``providers.<id>.api_key``, then the provider's env var."""

    def __init__(self, config: ProjectConfig) -> None:
        self.config = config

    def get_credential(self, provider_id: str) -> str | None:
        provider = getattr(self.config.providers, provider_id, None)
        if provider is not None and provider.api_key:
            return provider.api_key
        env_name = PROVIDER_ENV_VARS.get(provider_id)
        if env_name:
            return os.getenv(env_name) or None
        return None


def resolve_credentials(provider: CredentialProvider) -> ProviderCredentials:
    """Collect every provider key that *provider* can supply."""
    return ProviderCredentials(**{
        provider_id: provider.get_credential(provider_id)
        for provider_id in PROVIDER_ENV_VARS
    })
