from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from model_bench.errors import ProviderError
from model_bench.models import Message
from model_bench.providers import (
    PROVIDERS,
    VendorProvider,
    call_provider,
    get_all_models,
    get_api_key,
    get_available_providers,
    resolve_model,
)

TRANSCRIPT = [
    Message(role="user", content="Goal: test\n\nBegin."),
    Message(role="assistant", content="Thought: hi"),
    Message(role="user", content="Use a tool or provide Final Answer."),
]


def _response(status: int, payload=None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.is_success = 200 <= status < 300
    response.text = text
    response.json.return_value = payload
    return response


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


def test_catalog_shape():
    assert list(PROVIDERS) == ["anthropic", "openai", "gemini"]
    assert [cfg.env_key for cfg in PROVIDERS.values()] == [
        "ANTHROPIC_API_KEY",
        "OPENAI_API_KEY",
        "GEMINI_API_KEY",
    ]
    assert sum(len(cfg.models) for cfg in PROVIDERS.values()) == 5
    gemini = PROVIDERS["gemini"].models[0]
    assert (gemini.input_cost, gemini.output_cost) == (0.0, 0.0)


def test_no_providers_without_keys():
    assert get_available_providers() == []


def test_providers_from_env_and_explicit_keys(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "g-key")
    assert get_available_providers({"anthropic": "a-key"}) == ["anthropic", "gemini"]
    assert get_api_key("gemini") == "g-key"
    assert get_api_key("anthropic", {"anthropic": "a-key"}) == "a-key"
    assert get_api_key("mistral") is None


def test_get_all_models_filter():
    subset = get_all_models(["openai", "gemini"])
    assert {m.provider for m in subset} == {"openai", "gemini"}
    assert all(m.provider_name for m in subset)


@pytest.mark.parametrize(
    "query, expected",
    [
        ("haiku", "claude-haiku-4-5-20251001"),
        ("Sonnet 4.5", "claude-sonnet-4-5-20250929"),
        ("gpt-4o-mini", "gpt-4o-mini"),
        ("gpt-4o", "gpt-4o"),
        ("gemini-2.0-flash", "gemini-2.0-flash"),
        ("gemini", "gemini-2.0-flash"),
    ],
)
def test_resolve_model(query, expected):
    assert resolve_model(query).id == expected


def test_resolve_model_unknown():
    assert resolve_model("llama-3") is None
    assert resolve_model("  ") is None


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------


@patch("model_bench.providers.httpx.post")
def test_anthropic_request_and_usage(mock_post):
    mock_post.return_value = _response(
        200, {"content": [{"text": "Final Answer: ok"}], "usage": {"input_tokens": 11, "output_tokens": 7}}
    )

    reply = VendorProvider("anthropic").complete("system", TRANSCRIPT, "claude-haiku-4-5-20251001", "a-key", 256)

    assert reply.text == "Final Answer: ok"
    assert (reply.input_tokens, reply.output_tokens) == (11, 7)
    assert reply.latency_ms >= 0
    kwargs = mock_post.call_args.kwargs
    assert kwargs["headers"]["x-api-key"] == "a-key"
    assert kwargs["json"]["system"] == "system"
    assert kwargs["json"]["max_tokens"] == 256
    assert [m["role"] for m in kwargs["json"]["messages"]] == ["user", "assistant", "user"]


@patch("model_bench.providers.httpx.post")
def test_anthropic_http_error(mock_post):
    mock_post.return_value = _response(429, text="rate limited")
    with pytest.raises(ProviderError) as info:
        VendorProvider("anthropic").complete("", TRANSCRIPT, "m", "a-key", 16)
    assert info.value.status == 429
    assert "rate limited" in info.value.message


@patch("model_bench.providers.httpx.post")
def test_transport_error_becomes_provider_error(mock_post):
    mock_post.side_effect = httpx.ConnectTimeout("timed out")
    with pytest.raises(ProviderError) as info:
        VendorProvider("anthropic").complete("", TRANSCRIPT, "m", "a-key", 16)
    assert info.value.status is None


@patch("model_bench.providers.httpx.post")
def test_malformed_json_becomes_provider_error(mock_post):
    response = _response(200)
    response.json.side_effect = ValueError("Expecting value")
    mock_post.return_value = response
    with pytest.raises(ProviderError, match="malformed"):
        VendorProvider("anthropic").complete("", TRANSCRIPT, "m", "a-key", 16)


@patch("model_bench.providers.httpx.post")
def test_single_prompt_call_omits_system(mock_post):
    mock_post.return_value = _response(200, {"content": [{"text": "hello"}], "usage": {}})
    reply = call_provider("anthropic", "m", "Say hello", "a-key", 32)
    body = mock_post.call_args.kwargs["json"]
    assert "system" not in body
    assert body["messages"] == [{"role": "user", "content": "Say hello"}]
    assert reply.text == "hello"


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------


@patch("model_bench.providers.httpx.post")
def test_gemini_maps_roles_and_usage(mock_post):
    mock_post.return_value = _response(
        200,
        {
            "candidates": [{"content": {"parts": [{"text": "Thought: x"}]}}],
            "usageMetadata": {"promptTokenCount": 5, "candidatesTokenCount": 3},
        },
    )

    reply = VendorProvider("gemini").complete("sys", TRANSCRIPT, "gemini-2.0-flash", "g-key", 64)

    assert reply.text == "Thought: x"
    assert (reply.input_tokens, reply.output_tokens) == (5, 3)
    args, kwargs = mock_post.call_args
    assert args[0].endswith("/models/gemini-2.0-flash:generateContent")
    assert [c["role"] for c in kwargs["json"]["contents"]] == ["user", "model", "user"]
    assert kwargs["json"]["systemInstruction"] == {"parts": [{"text": "sys"}]}
    assert kwargs["json"]["generationConfig"] == {"maxOutputTokens": 64}


@patch("model_bench.providers.httpx.post")
def test_gemini_empty_candidates(mock_post):
    mock_post.return_value = _response(200, {"candidates": []})
    reply = VendorProvider("gemini").complete("", TRANSCRIPT, "gemini-2.0-flash", "g-key", 64)
    assert reply.text == ""


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------


@patch("model_bench.providers.openai.OpenAI")
def test_openai_prepends_system_message(mock_client_cls):
    client = mock_client_cls.return_value.__enter__.return_value
    client.chat.completions.create.return_value = SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content="Final Answer: gpt"))],
        usage=SimpleNamespace(prompt_tokens=20, completion_tokens=4),
    )

    reply = VendorProvider("openai").complete("sys", TRANSCRIPT, "gpt-4o-mini", "o-key", 128)

    assert reply.text == "Final Answer: gpt"
    assert (reply.input_tokens, reply.output_tokens) == (20, 4)
    assert mock_client_cls.call_args.kwargs["api_key"] == "o-key"
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["messages"][0] == {"role": "system", "content": "sys"}
    assert len(kwargs["messages"]) == 4
    assert kwargs["max_tokens"] == 128
    mock_client_cls.return_value.__exit__.assert_called_once()


@patch("model_bench.providers.openai.OpenAI")
def test_openai_status_error(mock_client_cls):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    error = openai.InternalServerError("server down", response=httpx.Response(500, request=request), body=None)
    mock_client_cls.return_value.__enter__.return_value.chat.completions.create.side_effect = error

    with pytest.raises(ProviderError) as info:
        VendorProvider("openai").complete("", TRANSCRIPT, "gpt-4o", "o-key", 16)
    assert info.value.status == 500
    mock_client_cls.return_value.__exit__.assert_called_once()


def test_unknown_vendor_rejected():
    with pytest.raises(ValueError, match="Unknown provider"):
        VendorProvider("mistral")
