from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

import httpx
import ollama
import openai
from google import genai
from google.genai import errors as genai_errors

from config.settings import Settings

from .errors import TransportError
from .registry import Provider

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 503}


class ResponseFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0

    def delay_for(self, attempt: int) -> float:
        """Sleep before retry number `attempt` (1-based)."""
        return min(self.initial_delay * (2 ** (attempt - 1)), self.max_delay)


DEFAULT_RETRY = RetryPolicy()


class Transport(Protocol):
    supports_json: bool

    def complete(self, model: str, prompt: str, response_format: ResponseFormat) -> str: ...


class OpenAIChatTransport:
    """Chat-completion transport with native JSON mode."""

    supports_json = True

    def __init__(self, api_key: str, *, base_url: str = "", timeout: float, temperature: float):
        kwargs = {"api_key": api_key, "timeout": timeout, "max_retries": 0}
        if base_url:
            kwargs["base_url"] = base_url
        self.client = openai.OpenAI(**kwargs)
        self.temperature = temperature

    def complete(self, model: str, prompt: str, response_format: ResponseFormat) -> str:
        kwargs = {}
        if response_format == ResponseFormat.JSON:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                **kwargs,
            )
        except openai.APIConnectionError as exc:
            # Covers APITimeoutError as well.
            raise TransportError(Provider.OPENAI.value, str(exc), retryable=True) from exc
        except openai.APIStatusError as exc:
            raise _status_error(Provider.OPENAI, exc.status_code, exc) from exc
        except openai.OpenAIError as exc:
            raise TransportError(Provider.OPENAI.value, str(exc)) from exc
        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""


class GeminiChatTransport:
    """Gemini generate_content; JSON mode via response_mime_type."""

    supports_json = True

    def __init__(self, api_key: str, *, timeout: float, temperature: float):
        self.client = genai.Client(
            api_key=api_key, http_options={"timeout": int(timeout * 1000)}
        )
        self.temperature = temperature

    def complete(self, model: str, prompt: str, response_format: ResponseFormat) -> str:
        config = {"temperature": self.temperature}
        if response_format == ResponseFormat.JSON:
            config["response_mime_type"] = "application/json"
        try:
            resp = self.client.models.generate_content(
                model=model, contents=prompt, config=config
            )
        except genai_errors.APIError as exc:
            raise _status_error(Provider.GEMINI, exc.code, exc) from exc
        except httpx.HTTPError as exc:
            raise TransportError(Provider.GEMINI.value, str(exc), retryable=True) from exc
        return resp.text or ""


class OllamaGenerateTransport:
    """
    Raw-generate transport for Ollama servers. No JSON mode is requested; the
    caller pulls the object out of free text.
    """

    supports_json = False

    def __init__(
        self,
        provider: Provider,
        host: str,
        *,
        api_key: str = "",
        timeout: float,
        temperature: float,
    ):
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else None
        self.provider = provider
        self.client = ollama.Client(host=host, headers=headers, timeout=timeout)
        self.temperature = temperature

    def complete(self, model: str, prompt: str, response_format: ResponseFormat) -> str:
        try:
            resp = self.client.generate(
                model=model, prompt=prompt, options={"temperature": self.temperature}
            )
        except ollama.ResponseError as exc:
            raise _status_error(self.provider, exc.status_code, exc) from exc
        except ollama.RequestError as exc:
            raise TransportError(self.provider.value, str(exc)) from exc
        except (ConnectionError, httpx.HTTPError) as exc:
            raise TransportError(self.provider.value, str(exc), retryable=True) from exc
        return resp["response"] or ""


def build_transport(provider: Provider, settings: Settings) -> Transport:
    timeout = settings.ai_request_timeout
    temperature = settings.ai_temperature
    if provider == Provider.OPENAI:
        return OpenAIChatTransport(
            settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=timeout,
            temperature=temperature,
        )
    if provider == Provider.GEMINI:
        return GeminiChatTransport(settings.gemini_api_key, timeout=timeout, temperature=temperature)
    if provider == Provider.OLLAMA_LOCAL:
        return OllamaGenerateTransport(
            provider, settings.ollama_local_host, timeout=timeout, temperature=temperature
        )
    if provider == Provider.OLLAMA_CLOUD:
        return OllamaGenerateTransport(
            provider,
            settings.ollama_cloud_host,
            api_key=settings.ollama_cloud_api_key,
            timeout=timeout,
            temperature=temperature,
        )
    raise ValueError(f"Unknown provider: {provider!r}")


class RequestDispatcher:
    def __init__(
        self,
        settings: Settings,
        transports: Optional[Dict[Provider, Transport]] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings
        self._transports: Dict[Provider, Transport] = dict(transports or {})
        self._sleep = sleep

    def transport_for(self, provider: Provider) -> Transport:
        if not isinstance(provider, Provider):
            raise ValueError(f"Unknown provider: {provider!r}")
        if provider not in self._transports:
            self._transports[provider] = build_transport(provider, self.settings)
        return self._transports[provider]

    def dispatch(
        self,
        provider: Provider,
        model: str,
        prompt: str,
        response_format: ResponseFormat = ResponseFormat.TEXT,
        *,
        retry: Optional[RetryPolicy] = None,
    ) -> str:
        transport = self.transport_for(provider)
        if response_format == ResponseFormat.JSON and not transport.supports_json:
            response_format = ResponseFormat.TEXT
        attempts = max(retry.max_attempts, 1) if retry else 1
        attempt = 1
        while True:
            try:
                text = transport.complete(model, prompt, response_format)
            except TransportError as exc:
                if not exc.retryable or attempt >= attempts:
                    raise
                wait_time = retry.delay_for(attempt)
                logger.warning(
                    "%s call failed (attempt %s/%s). Waiting %.1fs: %s",
                    provider.value,
                    attempt,
                    attempts,
                    wait_time,
                    exc.message,
                )
                self._sleep(wait_time)
                attempt += 1
                continue
            if not text or not text.strip():
                raise TransportError(provider.value, f"Empty response from model {model}")
            return text


def _status_error(provider: Provider, status_code, exc: Exception) -> TransportError:
    code = status_code if isinstance(status_code, int) else None
    return TransportError(
        provider.value,
        str(exc),
        status_code=code,
        retryable=code in RETRYABLE_STATUS or _is_rate_limit_error(exc),
    )


def _is_rate_limit_error(exc: Exception) -> bool:
    msg = str(exc).lower()
    return "rate limit" in msg or "rate_limit" in msg
