# benchmark.py
# Direct benchmark runner: no agent, no tools.
#
# Every prompt is sent to every selected model once. Failed runs are kept as
# results with an error so the error rate stays visible in the stats.
# Per-model stats are sorted fastest first; the winner picks ignore models
# whose every run failed.

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional, Union

from pydantic import TypeAdapter, ValidationError

from model_bench import display
from model_bench.config import Config, load_config
from model_bench.errors import ConfigurationError, ProviderError
from model_bench.models import (
    BenchmarkResult,
    CatalogModel,
    ModelResult,
    ModelStats,
    PromptCase,
    WinnerRecommendation,
)
from model_bench.providers import (
    PROVIDERS,
    call_provider,
    get_all_models,
    get_api_key,
    get_available_providers,
    resolve_model,
)
from model_bench.stats import latency_percentile

DEFAULT_PROMPTS: list[PromptCase] = [
    PromptCase(
        name="code-generation",
        prompt=(
            "Write a TypeScript function that checks if a string is a valid palindrome, "
            "ignoring spaces and punctuation."
        ),
        rubric=["correctness", "efficiency", "readability"],
    ),
    PromptCase(
        name="reasoning",
        prompt="A farmer has 17 sheep. All but 9 die. How many are left? Explain your reasoning step by step.",
        rubric=["correctness", "clarity"],
    ),
    PromptCase(
        name="summarization",
        prompt="Summarize the key differences between TCP and UDP protocols in exactly 3 bullet points.",
        rubric=["accuracy", "conciseness", "completeness"],
    ),
    PromptCase(
        name="creative",
        prompt="Write a 4-line poem about a neural network learning to see.",
        rubric=["creativity", "coherence"],
    ),
]

_PROMPT_LIST = TypeAdapter(list[PromptCase])


def load_prompts(path: Union[str, Path]) -> list[PromptCase]:
    """Read a JSON array of prompt cases ``[{"name", "prompt", ...}]``."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        prompts = _PROMPT_LIST.validate_python(raw)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read prompts file {path}: {exc}") from exc
    except (ValueError, ValidationError) as exc:
        raise ConfigurationError(f"Invalid prompts file {path}: {exc}") from exc
    if not prompts:
        raise ConfigurationError(f"Prompts file {path} has no prompt cases")
    return prompts


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def compute_model_stats(results: Iterable[ModelResult]) -> list[ModelStats]:
    """Group runs by model label and summarize each group, fastest first."""
    by_model: dict[str, list[ModelResult]] = {}
    for result in results:
        by_model.setdefault(result.model, []).append(result)

    stats: list[ModelStats] = []
    for model, runs in by_model.items():
        latencies = [r.latency_ms for r in runs if not r.error]
        errors = sum(1 for r in runs if r.error)
        total_output = sum(r.output_tokens for r in runs)
        total_cost = sum(r.cost_usd for r in runs)

        stats.append(
            ModelStats(
                model=model,
                provider=runs[0].provider,
                total_runs=len(runs),
                avg_latency_ms=round(sum(latencies) / len(latencies)) if latencies else 0,
                p50_latency_ms=latency_percentile(latencies, 50) if latencies else 0,
                p95_latency_ms=latency_percentile(latencies, 95) if latencies else 0,
                p99_latency_ms=latency_percentile(latencies, 99) if latencies else 0,
                avg_input_tokens=round(sum(r.input_tokens for r in runs) / len(runs)),
                avg_output_tokens=round(total_output / len(runs)),
                total_cost_usd=total_cost,
                cost_per_1k_tokens=round(total_cost / total_output * 1000, 6) if total_output else 0.0,
                error_rate=errors / len(runs),
            )
        )

    return sorted(stats, key=lambda s: s.avg_latency_ms)


def pick_winner(stats: list[ModelStats]) -> Optional[WinnerRecommendation]:
    """
    Fastest by average latency, cheapest by total cost, and best value by the
    lowest sum of latency and cost, each normalized to the field's maximum.

    Ties go to the earlier entry. Returns None when no model had a
    successful run.
    """
    valid = [s for s in stats if s.error_rate < 1]
    if not valid:
        return None

    fastest = min(valid, key=lambda s: s.avg_latency_ms)
    cheapest = min(valid, key=lambda s: s.total_cost_usd)
    max_latency = max([s.avg_latency_ms for s in valid] + [1])
    max_cost = max([s.total_cost_usd for s in valid] + [0.000001])
    best_value = min(valid, key=lambda s: s.avg_latency_ms / max_latency + s.total_cost_usd / max_cost)

    return WinnerRecommendation(
        fastest=f"{fastest.model} ({fastest.provider})",
        cheapest=f"{cheapest.model} ({cheapest.provider})",
        best_value=f"{best_value.model} ({best_value.provider})",
        summary=(
            f"Fastest: {fastest.model} at {fastest.avg_latency_ms}ms avg. "
            f"Cheapest: {cheapest.model} at ${cheapest.total_cost_usd:.4f}. "
            f"Best value: {best_value.model}."
        ),
    )


# ---------------------------------------------------------------------------
# Runner
# ---------------------------------------------------------------------------


def _select_models(
    models: Optional[list[str]],
    providers: Optional[list[str]],
    prompts: list[PromptCase],
    api_keys: Optional[dict[str, str]],
) -> tuple[list[CatalogModel], list[ModelResult]]:
    """Resolve the models to run plus error results for unresolvable names."""
    if models:
        selected: list[CatalogModel] = []
        unknown: list[ModelResult] = []
        for query in models:
            model = resolve_model(query)
            if model is not None:
                selected.append(model)
                continue
            unknown.extend(
                ModelResult(
                    model=query,
                    model_id="unknown",
                    provider="unknown",
                    prompt=case.prompt,
                    prompt_name=case.name,
                    error=f"Unknown model: {query}",
                )
                for case in prompts
            )
        return selected, unknown

    if providers:
        bad = [p for p in providers if p not in PROVIDERS]
        if bad:
            raise ConfigurationError(f"Unknown provider(s): {', '.join(bad)}. Known: {', '.join(PROVIDERS)}")
    else:
        providers = get_available_providers(api_keys)
    if not providers:
        raise ConfigurationError(
            "No API keys found. Set ANTHROPIC_API_KEY, OPENAI_API_KEY, or GEMINI_API_KEY, or pass --providers."
        )
    return get_all_models(providers), []


def _run_one(
    model: CatalogModel,
    case: PromptCase,
    api_keys: Optional[dict[str, str]],
    config: Config,
) -> ModelResult:
    base = dict(
        model=model.label,
        model_id=model.id,
        provider=model.provider_name,
        prompt=case.prompt,
        prompt_name=case.name,
    )
    api_key = get_api_key(model.provider, api_keys)
    if not api_key:
        env_key = PROVIDERS[model.provider].env_key
        return ModelResult(**base, error=f"Missing API key for {model.provider_name} ({env_key})")
    try:
        reply = call_provider(
            model.provider,
            model.id,
            case.prompt,
            api_key,
            case.max_tokens or config.tool_max_tokens,
            timeout=config.http_timeout,
        )
    except ProviderError as exc:
        return ModelResult(**base, error=str(exc))

    cost = reply.input_tokens / 1000 * model.input_cost + reply.output_tokens / 1000 * model.output_cost
    return ModelResult(
        **base,
        response=reply.text,
        latency_ms=reply.latency_ms,
        input_tokens=reply.input_tokens,
        output_tokens=reply.output_tokens,
        cost_usd=round(cost, 6),
    )


def run_benchmark(
    models: Optional[list[str]] = None,
    providers: Optional[list[str]] = None,
    prompts: Optional[list[PromptCase]] = None,
    api_keys: Optional[dict[str, str]] = None,
    config: Optional[Config] = None,
    verbose: bool = True,
) -> BenchmarkResult:
    """
    Send every prompt to every selected model and summarize the runs.

    ``models`` (ids, labels or shorthand) takes precedence over
    ``providers``; with neither, every configured vendor's models run.
    Provider failures are recorded per run and never abort the benchmark.

    Raises ConfigurationError when nothing can be selected.
    """
    config = config or load_config()
    prompts = prompts or DEFAULT_PROMPTS
    out = display if verbose else display.Quiet()

    selected, results = _select_models(models, providers, prompts, api_keys)
    for case in prompts:
        for model in selected:
            result = _run_one(model, case, api_keys, config)
            out.benchmark_progress(result)
            results.append(result)

    stats = compute_model_stats(results)
    return BenchmarkResult(
        timestamp=datetime.now(timezone.utc).isoformat(),
        results=results,
        stats=stats,
        models=list(dict.fromkeys(r.model for r in results)),
        providers=list(dict.fromkeys(r.provider for r in results)),
        prompt_count=len(prompts),
        winner=pick_winner(stats),
    )
