# providers.py
# Provider catalog and Completion Provider adapters.
#
# Each vendor is reached with the caller's own key (BYOK). Anthropic and
# Gemini are called over their REST APIs with httpx; OpenAI goes through
# the openai SDK. Every failure leaves this module as a ProviderError.

import os
import time
from typing import Iterable, Optional, Protocol

import httpx
import openai

from model_bench.errors import ProviderError
from model_bench.models import CatalogModel, Completion, Message, ModelDef, ProviderConfig

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

PROVIDERS: dict[str, ProviderConfig] = {
    "anthropic": ProviderConfig(
        name="Anthropic",
        env_key="ANTHROPIC_API_KEY",
        models=[
            ModelDef(id="claude-haiku-4-5-20251001", label="Haiku 4.5", input_cost=0.001, output_cost=0.005),
            ModelDef(id="claude-sonnet-4-5-20250929", label="Sonnet 4.5", input_cost=0.003, output_cost=0.015),
        ],
    ),
    "openai": ProviderConfig(
        name="OpenAI",
        env_key="OPENAI_API_KEY",
        models=[
            ModelDef(id="gpt-4o-mini", label="GPT-4o Mini", input_cost=0.00015, output_cost=0.0006),
            ModelDef(id="gpt-4o", label="GPT-4o", input_cost=0.0025, output_cost=0.01),
        ],
    ),
    "gemini": ProviderConfig(
        name="Google",
        env_key="GEMINI_API_KEY",
        models=[
            ModelDef(id="gemini-2.0-flash", label="Gemini 2.0 Flash", input_cost=0.0, output_cost=0.0),
        ],
    ),
}


def get_api_key(provider_key: str, api_keys: Optional[dict[str, str]] = None) -> Optional[str]:
    """Explicit key map first, then the vendor's environment variable."""
    if api_keys and api_keys.get(provider_key):
        return api_keys[provider_key]
    cfg = PROVIDERS.get(provider_key)
    if cfg is None:
        return None
    return os.getenv(cfg.env_key) or None


def get_available_providers(api_keys: Optional[dict[str, str]] = None) -> list[str]:
    """Vendor keys that have a credential, in catalog order."""
    return [key for key in PROVIDERS if get_api_key(key, api_keys)]


def get_all_models(provider_filter: Optional[Iterable[str]] = None) -> list[CatalogModel]:
    wanted = set(provider_filter) if provider_filter is not None else None
    result: list[CatalogModel] = []
    for key, cfg in PROVIDERS.items():
        if wanted is not None and key not in wanted:
            continue
        for model in cfg.models:
            result.append(CatalogModel(**model.model_dump(), provider=key, provider_name=cfg.name))
    return result


def resolve_model(query: str) -> Optional[CatalogModel]:
    """
    Resolve a model id, label, or shorthand ("haiku", "gpt-4o-mini") to its
    catalog entry. Exact matches on id, label, or hyphenated label win over
    prefix matches; the first catalog entry wins within each pass.
    """
    q = query.strip().lower()
    if not q:
        return None
    models = get_all_models()
    for model in models:
        label = model.label.lower()
        if q in (model.id.lower(), label, label.replace(" ", "-")):
            return model
    for model in models:
        if model.id.lower().startswith(q) or model.label.lower().startswith(q):
            return model
    return None


# ---------------------------------------------------------------------------
# Completion Provider contract
# ---------------------------------------------------------------------------


class CompletionProvider(Protocol):
    """Turns (system prompt, transcript) into one assistant reply."""

    def complete(
        self,
        system_prompt: str,
        transcript: Iterable[Message],
        model_id: str,
        credential: str,
        max_output_tokens: int,
    ) -> Completion: ...


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _post_json(url: str, *, headers: dict, body: dict, timeout: float, vendor: str) -> dict:
    try:
        response = httpx.post(url, headers=headers, json=body, timeout=timeout)
    except httpx.HTTPError as exc:
        raise ProviderError(None, f"{vendor} request failed: {exc}") from exc
    if not response.is_success:
        raise ProviderError(response.status_code, f"{vendor} API: {response.text}")
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderError(response.status_code, f"{vendor} returned malformed JSON: {exc}") from exc


class VendorProvider:
    """
    Concrete Completion Provider for one vendor in PROVIDERS.

    The credential is passed per call and never stored.

    Example:
        provider = VendorProvider("anthropic")
        reply = provider.complete("Be brief.", transcript, "claude-haiku-4-5-20251001", key, 256)
    """

    def __init__(self, provider_key: str, timeout: float = 60.0) -> None:
        if provider_key not in PROVIDERS:
            raise ValueError(f"Unknown provider: {provider_key}")
        self.provider_key = provider_key
        self._timeout = timeout

    def complete(
        self,
        system_prompt: str,
        transcript: Iterable[Message],
        model_id: str,
        credential: str,
        max_output_tokens: int,
    ) -> Completion:
        messages = [{"role": m.role, "content": m.content} for m in transcript]
        call = getattr(self, f"_complete_{self.provider_key}")
        return call(system_prompt, messages, model_id, credential, max_output_tokens)

    # ------------------------------------------------------------------
    # Vendors
    # ------------------------------------------------------------------

    def _complete_anthropic(
        self, system_prompt: str, messages: list[dict], model_id: str, credential: str, max_tokens: int
    ) -> Completion:
        body: dict = {"model": model_id, "max_tokens": max_tokens, "messages": messages}
        if system_prompt:
            body["system"] = system_prompt
        headers = {
            "x-api-key": credential,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }
        start = time.monotonic()
        data = _post_json(ANTHROPIC_URL, headers=headers, body=body, timeout=self._timeout, vendor="Anthropic")
        latency_ms = _elapsed_ms(start)

        try:
            content = data.get("content") or []
            usage = data.get("usage") or {}
            return Completion(
                text=content[0].get("text", "") if content else "",
                input_tokens=usage.get("input_tokens", 0),
                output_tokens=usage.get("output_tokens", 0),
                latency_ms=latency_ms,
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise ProviderError(None, f"Anthropic payload is malformed: {exc}") from exc

    def _complete_openai(
        self, system_prompt: str, messages: list[dict], model_id: str, credential: str, max_tokens: int
    ) -> Completion:
        chat = ([{"role": "system", "content": system_prompt}] if system_prompt else []) + messages
        start = time.monotonic()
        try:
            with openai.OpenAI(api_key=credential, timeout=self._timeout, max_retries=0) as client:
                response = client.chat.completions.create(
                    model=model_id,
                    max_tokens=max_tokens,
                    messages=chat,
                )
        except openai.APIStatusError as exc:
            raise ProviderError(exc.status_code, f"OpenAI API: {exc.message}") from exc
        except openai.APIError as exc:
            raise ProviderError(None, f"OpenAI request failed: {exc}") from exc
        latency_ms = _elapsed_ms(start)

        if not response.choices:
            raise ProviderError(None, "OpenAI payload is malformed: no choices returned")
        usage = response.usage
        return Completion(
            text=response.choices[0].message.content or "",
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            latency_ms=latency_ms,
        )

    def _complete_gemini(
        self, system_prompt: str, messages: list[dict], model_id: str, credential: str, max_tokens: int
    ) -> Completion:
        body: dict = {
            "contents": [
                {"role": "model" if m["role"] == "assistant" else "user", "parts": [{"text": m["content"]}]}
                for m in messages
            ],
            "generationConfig": {"maxOutputTokens": max_tokens},
        }
        if system_prompt:
            body["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        headers = {"Content-Type": "application/json", "x-goog-api-key": credential}
        start = time.monotonic()
        data = _post_json(
            GEMINI_URL.format(model=model_id), headers=headers, body=body, timeout=self._timeout, vendor="Gemini"
        )
        latency_ms = _elapsed_ms(start)

        try:
            candidates = data.get("candidates") or []
            parts = candidates[0].get("content", {}).get("parts", []) if candidates else []
            usage = data.get("usageMetadata") or {}
            return Completion(
                text=parts[0].get("text", "") if parts else "",
                input_tokens=usage.get("promptTokenCount", 0),
                output_tokens=usage.get("candidatesTokenCount", 0),
                latency_ms=latency_ms,
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise ProviderError(None, f"Gemini payload is malformed: {exc}") from exc


def call_provider(
    provider_key: str,
    model_id: str,
    prompt: str,
    api_key: str,
    max_tokens: int,
    timeout: float = 60.0,
) -> Completion:
    """Single-prompt call with no system prompt, used by tools."""
    return VendorProvider(provider_key, timeout=timeout).complete(
        "", [Message(role="user", content=prompt)], model_id, api_key, max_tokens
    )
