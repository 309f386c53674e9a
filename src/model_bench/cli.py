# cli.py
# Entry point. Config and wiring only. No agent logic lives here.

from pathlib import Path
from typing import List, Optional

import typer
from typer.core import TyperGroup

from model_bench import display
from model_bench.benchmark import DEFAULT_PROMPTS, load_prompts, run_benchmark
from model_bench.config import load_config
from model_bench.errors import ConfigurationError, ProviderError
from model_bench.harness import AgentHarness
from model_bench.providers import PROVIDERS, get_available_providers
from model_bench.tools import create_benchmark_tools, create_compare_tools

DEFAULT_GOAL = (
    "Benchmark all available models. List them first, design 3 test prompts for reasoning "
    "and creativity, run each test on each model, compute statistics, compare results, and "
    "give a clear recommendation for best overall, best value, and fastest."
)


class _BenchGroup(TyperGroup):
    """Unrecognized command names exit with status 1."""

    def resolve_command(self, ctx, args: list[str]):
        name = args[0] if args else None
        if name and not name.startswith("-") and self.get_command(ctx, name) is None:
            display.halt(f"Unknown command: {name}. Run 'model-bench --help' for usage.")
            ctx.exit(1)
        return super().resolve_command(ctx, args)


app = typer.Typer(
    name="model-bench",
    cls=_BenchGroup,
    help="Deep agent for AI model benchmarking. Claude vs GPT vs Gemini. BYOK.",
    no_args_is_help=True,
)


def _halt(exc: Exception, prefix: str = "") -> typer.Exit:
    display.halt(f"{prefix}{exc}")
    return typer.Exit(code=1)


def _split(value: Optional[str]) -> Optional[list[str]]:
    if not value:
        return None
    return [item.strip() for item in value.split(",") if item.strip()] or None


def _run(title: str, goal: str, tools_factory, max_steps: Optional[int]) -> None:
    try:
        config = load_config(step_budget=max_steps)
        harness = AgentHarness.from_environment(config)
    except ConfigurationError as exc:
        raise _halt(exc) from exc

    display.banner(title, harness.provider_label)
    try:
        result = harness.run(goal, tools_factory(config=config), step_budget=config.step_budget)
    except ProviderError as exc:
        raise _halt(exc, "Provider call failed: ") from exc

    display.agent_trace(result)
    display.final_result(result)


@app.command()
def agent(
    goal: Optional[str] = typer.Option(None, "--goal", help="Custom benchmarking goal."),
    max_steps: Optional[int] = typer.Option(None, "--max-steps", min=0, help="Max agent steps (default: 8)."),
) -> None:
    """Deep agent benchmark (multi-step)."""
    _run("Deep Agent Benchmark", goal or DEFAULT_GOAL, create_benchmark_tools, max_steps)


@app.command()
def compare(
    models: Optional[List[str]] = typer.Argument(None, help="Two or more model names, e.g. haiku gpt-4o-mini."),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Custom prompt for comparison."),
    max_steps: Optional[int] = typer.Option(None, "--max-steps", min=0, help="Max agent steps (default: 8)."),
) -> None:
    """Agent-powered side-by-side comparison."""
    models = models or []
    if len(models) < 2:
        display.halt("Need at least 2 models to compare. Usage: model-bench compare <model1> <model2>")
        raise typer.Exit(code=1)
    prompt_ctx = f' Use this test prompt: "{prompt}"' if prompt else ""
    goal = (
        f"Compare these models side by side: {', '.join(models)}. Run tests on each, compute "
        f"statistics, compare response quality, and recommend a winner.{prompt_ctx}"
    )
    _run("Agent Comparison", goal, create_compare_tools, max_steps)


@app.command("run")
def run_command(
    models: Optional[str] = typer.Option(None, "--models", help="Comma-separated model names."),
    providers: Optional[str] = typer.Option(None, "--providers", help="Comma-separated provider keys."),
    prompts: Optional[Path] = typer.Option(None, "--prompts", help="Prompts JSON file."),
    output: Optional[Path] = typer.Option(None, "--output", help="Save raw results as JSON."),
) -> None:
    """Direct benchmark against live APIs (no agent)."""
    try:
        config = load_config()
        cases = load_prompts(prompts) if prompts else None
        display.provider_status(PROVIDERS, get_available_providers())
        model_list = _split(models)
        provider_list = _split(providers)
        target = ", ".join(model_list or provider_list or ["all configured providers"])
        display.benchmark_start(len(cases or DEFAULT_PROMPTS), target)
        result = run_benchmark(models=model_list, providers=provider_list, prompts=cases, config=config)
    except ConfigurationError as exc:
        raise _halt(exc) from exc

    if output:
        output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        display.saved(str(output))
    display.benchmark_summary(result)


@app.command()
def providers() -> None:
    """Show configured providers and models."""
    try:
        load_config()
    except ConfigurationError as exc:
        raise _halt(exc) from exc
    available = get_available_providers()
    display.provider_status(PROVIDERS, available)
    if not available:
        display.halt(
            "No API keys found. Set at least one of: ANTHROPIC_API_KEY, OPENAI_API_KEY, GEMINI_API_KEY"
        )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
