from types import SimpleNamespace

import httpx
import ollama
import openai
import pytest
from google.genai import errors as genai_errors

from llm.client import RequestDispatcher, ResponseFormat, RetryPolicy, build_transport
from llm.errors import ProviderError, TransportError
from llm.registry import Provider


def _retryable(provider="gemini"):
    return TransportError(provider, "503 Service Unavailable", status_code=503, retryable=True)


def test_routes_to_provider_transport(make_dispatcher):
    dispatcher, transport = make_dispatcher('{"ok": true}', provider=Provider.OPENAI)
    text = dispatcher.dispatch(Provider.OPENAI, "gpt-a", "prompt", ResponseFormat.JSON)
    assert text == '{"ok": true}'
    assert transport.calls == [("gpt-a", "prompt", ResponseFormat.JSON)]


def test_generate_transport_is_never_asked_for_json_mode(make_dispatcher):
    dispatcher, transport = make_dispatcher(
        "Sure! {}", provider=Provider.OLLAMA_LOCAL, supports_json=False
    )
    dispatcher.dispatch(Provider.OLLAMA_LOCAL, "llama3.1", "prompt", ResponseFormat.JSON)
    assert transport.calls[0][2] == ResponseFormat.TEXT


def test_unknown_provider_fails_fast(settings):
    dispatcher = RequestDispatcher(settings, {})
    with pytest.raises(ValueError):
        dispatcher.dispatch("gemini", "gemini-a", "prompt")
    with pytest.raises(ValueError):
        build_transport("anthropic", settings)


@pytest.mark.parametrize("empty", ["", "   \n"])
def test_empty_response_is_transport_error(make_dispatcher, empty):
    dispatcher, _ = make_dispatcher(empty)
    with pytest.raises(TransportError) as excinfo:
        dispatcher.dispatch(Provider.GEMINI, "gemini-a", "prompt")
    assert excinfo.value.provider == "gemini"
    assert not excinfo.value.retryable


def test_no_retry_without_policy(make_dispatcher, sleeps):
    dispatcher, transport = make_dispatcher(_retryable(), "never reached")
    with pytest.raises(TransportError):
        dispatcher.dispatch(Provider.GEMINI, "gemini-a", "prompt")
    assert len(transport.calls) == 1
    assert sleeps == []


def test_retryable_errors_back_off_exponentially(make_dispatcher, sleeps):
    dispatcher, transport = make_dispatcher(_retryable(), _retryable(), "done")
    text = dispatcher.dispatch(Provider.GEMINI, "gemini-a", "prompt", retry=RetryPolicy())
    assert text == "done"
    assert len(transport.calls) == 3
    assert sleeps == [1.0, 2.0]


def test_retries_stop_after_max_attempts(make_dispatcher, sleeps):
    dispatcher, transport = make_dispatcher(_retryable(), _retryable(), _retryable(), "late")
    with pytest.raises(TransportError):
        dispatcher.dispatch(Provider.GEMINI, "gemini-a", "prompt", retry=RetryPolicy())
    assert len(transport.calls) == 3
    assert sleeps == [1.0, 2.0]


def test_non_retryable_errors_are_not_retried(make_dispatcher, sleeps):
    error = TransportError("gemini", "401 Unauthorized", status_code=401)
    dispatcher, transport = make_dispatcher(error, "never reached")
    with pytest.raises(ProviderError) as excinfo:
        dispatcher.dispatch(Provider.GEMINI, "gemini-a", "prompt", retry=RetryPolicy())
    assert excinfo.value.status_code == 401
    assert len(transport.calls) == 1
    assert sleeps == []


def test_backoff_is_capped():
    policy = RetryPolicy(max_attempts=6, initial_delay=1.0, max_delay=10.0)
    assert [policy.delay_for(n) for n in range(1, 6)] == [1.0, 2.0, 4.0, 8.0, 10.0]


def test_transports_are_built_once_per_provider(settings):
    dispatcher = RequestDispatcher(settings)
    first = dispatcher.transport_for(Provider.OPENAI)
    assert dispatcher.transport_for(Provider.OPENAI) is first
    assert first.supports_json


# SDK errors -> TransportError

OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def _raising(*errors):
    """Stand-in for an SDK call: raises each error in turn, then answers."""
    pending = list(errors)

    def call(**kwargs):
        if pending:
            raise pending.pop(0)
        return {"response": "hello"}

    return call


def _openai_transport(settings, error):
    transport = build_transport(Provider.OPENAI, settings)
    transport.client = SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=_raising(error)))
    )
    return transport


def _openai_status(cls, status):
    response = httpx.Response(status, request=httpx.Request("POST", OPENAI_URL))
    return cls(f"{status} from OpenAI", response=response, body=None)


@pytest.mark.parametrize(
    "error, status_code, retryable",
    [
        (_openai_status(openai.RateLimitError, 429), 429, True),
        (_openai_status(openai.InternalServerError, 503), 503, True),
        (_openai_status(openai.AuthenticationError, 401), 401, False),
        (_openai_status(openai.BadRequestError, 400), 400, False),
        (openai.APIConnectionError(request=httpx.Request("POST", OPENAI_URL)), None, True),
        (openai.APITimeoutError(request=httpx.Request("POST", OPENAI_URL)), None, True),
        (openai.OpenAIError("unexpected payload"), None, False),
    ],
)
def test_openai_errors_become_transport_errors(settings, error, status_code, retryable):
    transport = _openai_transport(settings, error)
    with pytest.raises(TransportError) as excinfo:
        transport.complete("gpt-a", "prompt", ResponseFormat.JSON)
    assert excinfo.value.provider == "openai"
    assert excinfo.value.status_code == status_code
    assert excinfo.value.retryable is retryable


@pytest.mark.parametrize(
    "error, status_code, retryable",
    [
        (genai_errors.APIError(429, {"error": {"message": "Resource exhausted", "status": "RESOURCE_EXHAUSTED"}}), 429, True),
        (genai_errors.APIError(503, {"error": {"message": "Overloaded", "status": "UNAVAILABLE"}}), 503, True),
        (genai_errors.APIError(401, {"error": {"message": "API key not valid", "status": "UNAUTHENTICATED"}}), 401, False),
        (httpx.ConnectTimeout("timed out"), None, True),
    ],
)
def test_gemini_errors_become_transport_errors(settings, error, status_code, retryable):
    transport = build_transport(Provider.GEMINI, settings)
    transport.client = SimpleNamespace(models=SimpleNamespace(generate_content=_raising(error)))
    with pytest.raises(TransportError) as excinfo:
        transport.complete("gemini-a", "prompt", ResponseFormat.JSON)
    assert excinfo.value.provider == "gemini"
    assert excinfo.value.status_code == status_code
    assert excinfo.value.retryable is retryable


@pytest.mark.parametrize(
    "error, status_code, retryable",
    [
        (ollama.ResponseError("too many requests", 429), 429, True),
        (ollama.ResponseError("model 'llama9' not found", 404), 404, False),
        (ollama.ResponseError("unauthorized", 401), 401, False),
        (ollama.RequestError("must provide a model"), None, False),
        (ConnectionError("connection refused"), None, True),
        (httpx.ReadTimeout("timed out"), None, True),
    ],
)
def test_ollama_errors_become_transport_errors(settings, error, status_code, retryable):
    transport = build_transport(Provider.OLLAMA_LOCAL, settings)
    transport.client = SimpleNamespace(generate=_raising(error))
    with pytest.raises(TransportError) as excinfo:
        transport.complete("llama3.1", "prompt", ResponseFormat.TEXT)
    assert excinfo.value.provider == "ollama-local"
    assert excinfo.value.status_code == status_code
    assert excinfo.value.retryable is retryable


def test_mapped_sdk_errors_drive_the_retry_loop(settings, sleeps):
    transport = build_transport(Provider.OLLAMA_LOCAL, settings)
    transport.client = SimpleNamespace(
        generate=_raising(ConnectionError("refused"), ollama.ResponseError("busy", 503))
    )
    dispatcher = RequestDispatcher(
        settings, {Provider.OLLAMA_LOCAL: transport}, sleep=sleeps.append
    )
    text = dispatcher.dispatch(Provider.OLLAMA_LOCAL, "llama3.1", "prompt", retry=RetryPolicy())
    assert text == "hello"
    assert sleeps == [1.0, 2.0]


def test_auth_failure_is_not_retried(settings, sleeps):
    transport = _openai_transport(settings, _openai_status(openai.AuthenticationError, 401))
    dispatcher = RequestDispatcher(settings, {Provider.OPENAI: transport}, sleep=sleeps.append)
    with pytest.raises(TransportError) as excinfo:
        dispatcher.dispatch(Provider.OPENAI, "gpt-a", "prompt", retry=RetryPolicy())
    assert excinfo.value.status_code == 401
    assert sleeps == []
