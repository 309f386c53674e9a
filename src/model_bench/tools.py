# tools.py
# Benchmark tool set: all callable implementations.
# The harness reaches these only through a ToolRegistry; each tool takes one
# text input and returns one text observation, or raises ToolError.

import json
from functools import partial
from typing import Any, Optional

from model_bench.config import Config, load_config
from model_bench.errors import ToolError
from model_bench.models import CatalogModel
from model_bench.providers import (
    PROVIDERS,
    call_provider,
    get_all_models,
    get_api_key,
    get_available_providers,
    resolve_model,
)
from model_bench.registry import Tool
from model_bench.stats import compute_statistics

NO_PROVIDER = "No LLM provider available."
PREVIEW_CHARS = 200


def _load_json(raw: str, tool_name: str) -> Any:
    try:
        return json.loads(raw, strict=False)
    except json.JSONDecodeError as exc:
        raise ToolError(f"{tool_name} expects JSON input: {exc}") from exc


def _estimate_cost(model: CatalogModel, input_tokens: int, output_tokens: int) -> float:
    cost = (input_tokens * model.input_cost + output_tokens * model.output_cost) / 1000
    return round(cost, 6)


def _ask_agent_model(prompt: str, api_keys: Optional[dict], config: Config) -> str:
    """Send a one-shot prompt to the first configured vendor's first model."""
    available = get_available_providers(api_keys)
    if not available:
        return NO_PROVIDER
    provider_key = available[0]
    model = PROVIDERS[provider_key].models[0]
    result = call_provider(
        provider_key,
        model.id,
        prompt,
        get_api_key(provider_key, api_keys),
        config.tool_max_tokens,
        timeout=config.http_timeout,
    )
    return result.text


def _find_model(query: str) -> Optional[CatalogModel]:
    """Exact id first, then a label substring, then catalog shorthand."""
    models = get_all_models()
    for model in models:
        if model.id == query:
            return model
    q = query.strip().lower()
    for model in models:
        if q and q in model.label.lower():
            return model
    return resolve_model(query)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


def _tool_list_available_models(_input: str, *, api_keys: Optional[dict], config: Config) -> str:
    available = get_available_providers(api_keys)
    return json.dumps(
        {
            "configured_providers": available,
            "models": [
                {
                    "id": m.id,
                    "label": m.label,
                    "provider": m.provider_name,
                    "provider_key": m.provider,
                    "input_cost": m.input_cost,
                    "output_cost": m.output_cost,
                    "configured": m.provider in available,
                }
                for m in get_all_models()
            ],
        }
    )


def _tool_design_test_suite(raw: str, *, api_keys: Optional[dict], config: Config) -> str:
    request = _load_json(raw, "design_test_suite")
    if not isinstance(request, dict) or not request.get("focus"):
        raise ToolError('design_test_suite expects {"focus": "string", "count": number}.')
    count = request.get("count") or 3
    prompt = (
        f'Design {count} benchmark prompts to test "{request["focus"]}". '
        'Return JSON array: [{"name": "test_name", "prompt": "the prompt"}]. Return ONLY JSON.'
    )
    return _ask_agent_model(prompt, api_keys, config)


def _tool_run_single_test(raw: str, *, api_keys: Optional[dict], config: Config) -> str:
    request = _load_json(raw, "run_single_test")
    if not isinstance(request, dict) or not request.get("model") or not request.get("prompt"):
        raise ToolError('run_single_test expects {"model": "name", "prompt": "text"}.')

    model = _find_model(str(request["model"]))
    if model is None:
        labels = ", ".join(m.label for m in get_all_models())
        return f"Model not found: {request['model']}. Available: {labels}"
    api_key = get_api_key(model.provider, api_keys)
    if not api_key:
        return f"No API key for {model.provider_name}"

    result = call_provider(
        model.provider,
        model.id,
        request["prompt"],
        api_key,
        config.tool_max_tokens,
        timeout=config.http_timeout,
    )
    return json.dumps(
        {
            "model": model.label,
            "provider": model.provider_name,
            "latency_ms": result.latency_ms,
            "input_tokens": result.input_tokens,
            "output_tokens": result.output_tokens,
            "response_preview": result.text[:PREVIEW_CHARS],
            "estimated_cost": _estimate_cost(model, result.input_tokens, result.output_tokens),
        }
    )


def _tool_compare_responses(raw: str, *, api_keys: Optional[dict], config: Config) -> str:
    prompt = f"Compare these model responses. Rank by quality, depth, accuracy. Explain why:\n\n{raw}"
    return _ask_agent_model(prompt, api_keys, config)


def _tool_compute_statistics(raw: str, *, api_keys: Optional[dict], config: Config) -> str:
    numbers = _load_json(raw, "compute_statistics")
    if (
        not isinstance(numbers, list)
        or not numbers
        or not all(isinstance(n, (int, float)) and not isinstance(n, bool) for n in numbers)
    ):
        return "Input must be non-empty JSON array of numbers."
    return json.dumps(compute_statistics(numbers))


def _tool_analyze_results(raw: str, *, api_keys: Optional[dict], config: Config) -> str:
    prompt = (
        "Analyze benchmark results. Identify winner, best value, fastest. "
        f"Give clear recommendation:\n\n{raw}"
    )
    return _ask_agent_model(prompt, api_keys, config)


TOOL_CATALOG: dict[str, tuple[str, Any]] = {
    "list_available_models": (
        "List all models and provider status with pricing. No input required.",
        _tool_list_available_models,
    ),
    "design_test_suite": (
        'Design targeted benchmark prompts. Input: JSON {"focus": "string", "count": number}.',
        _tool_design_test_suite,
    ),
    "run_single_test": (
        'Run a prompt against a model. Input: JSON {"model": "name", "prompt": "text"}.',
        _tool_run_single_test,
    ),
    "compare_responses": (
        "Compare model responses for quality. Input: JSON with responses array.",
        _tool_compare_responses,
    ),
    "compute_statistics": (
        "Compute stats (mean, p50, p95, min, max) on numeric data. Input: JSON array of numbers.",
        _tool_compute_statistics,
    ),
    "analyze_results": (
        "Analyze benchmark results with LLM. Input: JSON benchmark data.",
        _tool_analyze_results,
    ),
}

COMPARE_TOOL_NAMES = [
    "list_available_models",
    "run_single_test",
    "compare_responses",
    "compute_statistics",
    "analyze_results",
]


def create_benchmark_tools(
    api_keys: Optional[dict[str, str]] = None,
    config: Optional[Config] = None,
) -> list[Tool]:
    """Full benchmark toolkit for the agent, in a fixed order."""
    config = config or load_config()
    return [
        Tool(name, description, partial(fn, api_keys=api_keys, config=config))
        for name, (description, fn) in TOOL_CATALOG.items()
    ]


def create_compare_tools(
    api_keys: Optional[dict[str, str]] = None,
    config: Optional[Config] = None,
) -> list[Tool]:
    """Comparison-focused subset of the benchmark toolkit."""
    by_name = {t.name: t for t in create_benchmark_tools(api_keys, config)}
    return [by_name[name] for name in COMPARE_TOOL_NAMES]
