"""
Environment-backed settings for the AI providers.
"""
from __future__ import annotations

from functools import lru_cache
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


def split_models(value: str) -> List[str]:
    """Parse a comma-separated model list, dropping blanks and duplicates."""
    models: List[str] = []
    for item in value.split(","):
        name = item.strip()
        if name and name not in models:
            models.append(name)
    return models


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", case_sensitive=False
    )

    # Gemini
    gemini_api_key: str = ""
    gemini_enabled: bool = True
    gemini_models: str = "gemini-2.5-pro,gemini-2.5-flash"

    # OpenAI
    openai_api_key: str = ""
    openai_base_url: str = ""
    openai_enabled: bool = True
    openai_models: str = "gpt-4o,gpt-4o-mini"

    # Ollama running on this machine needs no credential, only an opt-in.
    ollama_local_enabled: bool = False
    ollama_local_host: str = "http://localhost:11434"
    ollama_local_models: str = "llama3.1"

    # Ollama cloud
    ollama_cloud_api_key: str = ""
    ollama_cloud_host: str = "https://ollama.com"
    ollama_cloud_enabled: bool = True
    ollama_cloud_models: str = "gpt-oss:120b"

    default_ai_provider: str = ""
    ai_request_timeout: float = 120.0
    ai_temperature: float = 0.3
    log_level: str = "INFO"

    def get_gemini_models(self) -> List[str]:
        return split_models(self.gemini_models)

    def get_openai_models(self) -> List[str]:
        return split_models(self.openai_models)

    def get_ollama_local_models(self) -> List[str]:
        return split_models(self.ollama_local_models)

    def get_ollama_cloud_models(self) -> List[str]:
        return split_models(self.ollama_cloud_models)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
