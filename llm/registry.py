from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple, Union

from config.settings import Settings

from .errors import ConfigurationError
from .storage import SelectionStore

logger = logging.getLogger(__name__)

PROVIDER_KEY = "active_provider"
MODEL_KEY = "active_model"


class TransportStyle(str, Enum):
    CHAT = "chat"
    GENERATE = "generate"


class Provider(str, Enum):
    GEMINI = "gemini"
    OPENAI = "openai"
    OLLAMA_LOCAL = "ollama-local"
    OLLAMA_CLOUD = "ollama-cloud"

    @property
    def label(self) -> str:
        return _LABELS[self]

    @property
    def transport_style(self) -> TransportStyle:
        if self in (Provider.OLLAMA_LOCAL, Provider.OLLAMA_CLOUD):
            return TransportStyle.GENERATE
        return TransportStyle.CHAT


_LABELS = {
    Provider.GEMINI: "Google Gemini",
    Provider.OPENAI: "OpenAI",
    Provider.OLLAMA_LOCAL: "Ollama (local)",
    Provider.OLLAMA_CLOUD: "Ollama (cloud)",
}


@dataclass(frozen=True)
class ProviderInfo:
    provider: Provider
    label: str
    models: Tuple[str, ...]


@dataclass(frozen=True)
class ProviderSelection:
    provider: Provider
    model: str


def configured_providers(settings: Settings) -> List[ProviderInfo]:
    """Providers with credentials/endpoints set, in preference order."""
    candidates = [
        (
            Provider.GEMINI,
            settings.gemini_enabled and bool(settings.gemini_api_key),
            settings.get_gemini_models(),
        ),
        (
            Provider.OPENAI,
            settings.openai_enabled and bool(settings.openai_api_key),
            settings.get_openai_models(),
        ),
        (
            Provider.OLLAMA_LOCAL,
            settings.ollama_local_enabled and bool(settings.ollama_local_host),
            settings.get_ollama_local_models(),
        ),
        (
            Provider.OLLAMA_CLOUD,
            settings.ollama_cloud_enabled and bool(settings.ollama_cloud_api_key),
            settings.get_ollama_cloud_models(),
        ),
    ]
    return [
        ProviderInfo(provider=provider, label=provider.label, models=tuple(models))
        for provider, enabled, models in candidates
        if enabled and models
    ]


class ProviderRegistry:
    """
    Resolves which provider/model handles AI calls. The choice is kept in a
    SelectionStore so it survives restarts; stale choices (provider no longer
    configured, model dropped from its list) are repaired on read.
    """

    def __init__(self, settings: Settings, store: SelectionStore):
        self.settings = settings
        self.store = store

    def list_available_providers(self) -> List[ProviderInfo]:
        return configured_providers(self.settings)

    def _info(self, provider: Provider) -> Optional[ProviderInfo]:
        for info in self.list_available_providers():
            if info.provider == provider:
                return info
        return None

    def get_active_provider(self) -> Provider:
        available = self.list_available_providers()
        if not available:
            raise ConfigurationError(
                "No AI provider is configured. Set GEMINI_API_KEY, OPENAI_API_KEY, "
                "OLLAMA_CLOUD_API_KEY or OLLAMA_LOCAL_ENABLED=true."
            )
        ids = [info.provider for info in available]
        for candidate in (self.store.get(PROVIDER_KEY), self.settings.default_ai_provider):
            provider = _parse_provider(candidate)
            if provider in ids:
                return provider
        return ids[0]

    def set_active_provider(
        self, provider: Union[Provider, str], model: Optional[str] = None
    ) -> ProviderSelection:
        parsed = _parse_provider(provider)
        info = self._info(parsed) if parsed else None
        if info is None:
            raise ConfigurationError(f"Provider '{provider}' is not configured.")
        if model not in info.models:
            if model:
                logger.warning(
                    "Model %s is not offered by %s; using %s", model, info.label, info.models[0]
                )
            model = info.models[0]
        self.store.set(PROVIDER_KEY, info.provider.value)
        self.store.set(MODEL_KEY, model)
        logger.info("Active AI provider set to %s (%s)", info.provider.value, model)
        return ProviderSelection(info.provider, model)

    def get_active_model(self) -> str:
        provider = self.get_active_provider()
        info = self._info(provider)
        stored = self.store.get(MODEL_KEY)
        if stored in info.models:
            return stored
        model = info.models[0]
        self.store.set(PROVIDER_KEY, provider.value)
        self.store.set(MODEL_KEY, model)
        return model

    def get_selection(self) -> ProviderSelection:
        return ProviderSelection(self.get_active_provider(), self.get_active_model())


def _parse_provider(value) -> Optional[Provider]:
    if isinstance(value, Provider):
        return value
    if not value:
        return None
    try:
        return Provider(str(value).strip().lower())
    except ValueError:
        return None
