import pytest

from config.settings import Settings
from llm.client import RequestDispatcher
from llm.registry import Provider, ProviderRegistry
from llm.storage import MemoryStore


class FakeTransport:
    """Replays canned responses; exceptions in the list are raised instead."""

    def __init__(self, responses=(), supports_json=True):
        self.responses = list(responses)
        self.supports_json = supports_json
        self.calls = []

    def complete(self, model, prompt, response_format):
        self.calls.append((model, prompt, response_format))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _make_settings(**overrides):
    values = dict(
        _env_file=None,
        gemini_api_key="test-gemini-key",
        gemini_enabled=True,
        gemini_models="gemini-a,gemini-b",
        openai_api_key="test-openai-key",
        openai_enabled=True,
        openai_models="gpt-a,gpt-b",
        ollama_local_enabled=False,
        ollama_cloud_api_key="",
        default_ai_provider="",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return _make_settings()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def registry(settings, store):
    return ProviderRegistry(settings, store)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_dispatcher(settings, sleeps):
    def _make(*responses, provider=Provider.GEMINI, supports_json=True):
        transport = FakeTransport(responses, supports_json=supports_json)
        dispatcher = RequestDispatcher(settings, {provider: transport}, sleep=sleeps.append)
        return dispatcher, transport

    return _make


@pytest.fixture
def make_settings():
    return _make_settings
