from __future__ import annotations

from typing import Optional


class ResumeAIError(Exception):
    """Base class for every failure raised by the AI layer."""


class ConfigurationError(ResumeAIError):
    """No usable provider is configured, or a selection is invalid."""


class ProviderError(ResumeAIError):
    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class TransportError(ProviderError):
    """A provider call failed on the wire or came back empty."""

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(provider, message)
        self.status_code = status_code
        self.retryable = retryable


class MalformedResponseError(ResumeAIError):
    """The model answered, but not with a parseable JSON object."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class StyleGenerationError(ResumeAIError):
    def __init__(self, message: str, provider: Optional[str] = None):
        prefix = f"{provider}: " if provider else ""
        super().__init__(f"{prefix}{message}")
        self.provider = provider
