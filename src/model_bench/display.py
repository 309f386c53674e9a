# display.py
# All terminal output for the benchmark agent.
#
# This module owns presentation entirely. harness.py and cli.py never format
# terminal strings; they call named functions here.
#
# Colour language:
#   cyan    — scaffolding / loop events
#   blue    — model calls and replies
#   yellow  — nudges and budget warnings
#   green   — success / final answer
#   red     — failures (tool errors, unknown tools, fatal errors)
#   magenta — ReAct internals (Thought / Action / Observation)

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from model_bench.models import AgentResult, BenchmarkResult, Completion, ModelResult, ProviderConfig

console = Console()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return escape(value[:max_len]) + "…"
    return escape(value)


class Quiet:
    """Stands in for this module when a run should print nothing."""

    def __getattr__(self, name: str):
        return lambda *args, **kwargs: None


# ---------------------------------------------------------------------------
# Run lifecycle
# ---------------------------------------------------------------------------


def banner(title: str, provider_label: str) -> None:
    console.print()
    console.print(
        Panel.fit(
            f"[bold cyan]{title}[/bold cyan]\n"
            "[dim]ReAct loop: investigate → test → analyze → recommend[/dim]\n\n"
            f"[dim]Agent model :[/dim] [white]{escape(provider_label)}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def run_start(goal: str, step_budget: int, tool_names: list[str]) -> None:
    console.print()
    console.print(Rule(f"[cyan]AGENT RUN · budget {step_budget} step(s)[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{escape(goal)}[/white]\n\n[dim]Tools: {', '.join(tool_names) or 'none'}[/dim]",
            title=_label("GOAL", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


def iteration_start(index: int, step_budget: int) -> None:
    console.print()
    console.print(f"[bold cyan]  ITERATION [{index + 1}/{step_budget}][/bold cyan]")


def model_reply(reply: Completion) -> None:
    console.print(
        f"  [blue]Model[/blue]    [dim]{reply.latency_ms} ms · "
        f"{reply.input_tokens} in / {reply.output_tokens} out[/dim]"
    )


# ---------------------------------------------------------------------------
# ReAct internals
# ---------------------------------------------------------------------------


def react_thought(thought: str) -> None:
    if thought:
        console.print(f"  [magenta]Thought[/magenta]  [dim white]{_mono(thought, 200)}[/dim white]")


def react_action(tool: str, action_input: str) -> None:
    console.print(
        f"  [magenta]Action[/magenta]   [bold white]{escape(tool)}[/bold white]"
        f"  [dim]{_mono(action_input, 100)}[/dim]"
    )


def react_observation(observation: str) -> None:
    console.print(f"  [magenta]Observe[/magenta]  [white]{_mono(observation, 140)}[/white]")


def tool_failed(tool_name: str, message: str) -> None:
    console.print(
        f"  [bold red]✗ Tool {escape(repr(tool_name))} failed[/bold red]  [dim]{_mono(message, 120)}[/dim]"
        "\n  [dim]Failure fed back to the model as an observation.[/dim]"
    )


def unknown_tool(tool_name: str) -> None:
    console.print(
        f"  [bold red]✗ Tool {escape(repr(tool_name))} is not registered.[/bold red]"
        "  [dim]Reporting available tools to the model.[/dim]"
    )


def unparseable_reply(raw: str) -> None:
    console.print(
        f"  [yellow]↳ No Action or Final Answer found, nudging model.[/yellow]"
        f"  [dim]{_mono(raw.strip(), 80)}[/dim]"
    )


def budget_exhausted(step_budget: int) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold yellow]Step budget of {step_budget} exhausted.[/bold yellow]\n"
            "[dim]Synthesizing a summary answer from the trace.[/dim]",
            title=_label("BUDGET EXHAUSTED", "yellow"),
            border_style="yellow",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


def agent_trace(result: AgentResult) -> None:
    if not result.steps:
        return
    console.print()
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="dim",
        show_header=True,
        header_style="bold dim",
        padding=(0, 1),
    )
    table.add_column("Step", justify="center", width=6)
    table.add_column("Tool", no_wrap=True)
    table.add_column("Thought", style="dim white", max_width=36)
    table.add_column("Observation", style="white")

    for index, step in enumerate(result.steps, start=1):
        table.add_row(str(index), escape(step.action), _mono(step.thought, 60), _mono(step.observation, 300))

    console.print(
        Panel(
            table,
            title=f"[dim]AGENT TRACE ({result.total_steps} steps)[/dim]",
            border_style="dim",
            padding=(0, 1),
        )
    )


def final_result(result: AgentResult) -> None:
    console.print()
    console.print(
        Panel(
            f"[white]{escape(result.final_answer)}[/white]",
            title=_label("FINAL ANSWER", "green"),
            subtitle=f"[dim]{result.total_steps} steps · {escape(result.provider_label)}[/dim]",
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


def provider_status(providers: dict[str, ProviderConfig], available: list[str]) -> None:
    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style="bold cyan", padding=(0, 1))
    table.add_column("Provider", style="bold white")
    table.add_column("Status")
    table.add_column("Model")
    table.add_column("Pricing", style="dim")

    total_models = 0
    for key, cfg in providers.items():
        status = "[green]READY[/green]" if key in available else f"[red]NOT CONFIGURED[/red] [dim]({cfg.env_key})[/dim]"
        for index, model in enumerate(cfg.models):
            total_models += 1
            if model.input_cost == 0 and model.output_cost == 0:
                pricing = "FREE"
            else:
                pricing = f"${model.input_cost}/1K in, ${model.output_cost}/1K out"
            table.add_row(
                f"{cfg.name} ({key})" if index == 0 else "",
                status if index == 0 else "",
                f"{model.label} [dim]{model.id}[/dim]",
                pricing,
            )

    console.print(table)
    console.print(
        f"[dim]{len(available)}/{len(providers)} providers configured, {total_models} models available.[/dim]"
    )


def halt(reason: str) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold white]{escape(reason)}[/bold white]",
            title=_label("HALT", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()


# ---------------------------------------------------------------------------
# Direct benchmark
# ---------------------------------------------------------------------------


def benchmark_start(prompt_count: int, target: str) -> None:
    console.print()
    console.print(Rule(f"[cyan]LIVE BENCHMARK · {prompt_count} prompt(s) · {escape(target)}[/cyan]", style="cyan"))


def benchmark_progress(result: ModelResult) -> None:
    where = f"[dim]\\[{escape(result.provider)}/{escape(result.model)}][/dim] {escape(result.prompt_name)}"
    if result.error:
        console.print(f"  [red]✗[/red] {where}: [red]{_mono(result.error, 100)}[/red]")
    else:
        console.print(f"  [green]✓[/green] {where}: {result.latency_ms}ms, {result.output_tokens} tokens")


def benchmark_summary(benchmark: BenchmarkResult) -> None:
    console.print()
    table = Table(box=box.SIMPLE_HEAVY, show_header=True, header_style="bold cyan", padding=(0, 1))
    table.add_column("Model", style="bold white", no_wrap=True)
    table.add_column("Provider")
    table.add_column("Avg", justify="right")
    table.add_column("P50", justify="right")
    table.add_column("P95", justify="right")
    table.add_column("P99", justify="right")
    table.add_column("Tokens", justify="right")
    table.add_column("Cost", justify="right", style="dim")
    table.add_column("Errors", justify="right")

    for s in benchmark.stats:
        errors = f"{s.error_rate * 100:.0f}%"
        table.add_row(
            escape(s.model),
            escape(s.provider),
            f"{s.avg_latency_ms}ms",
            f"{s.p50_latency_ms}ms",
            f"{s.p95_latency_ms}ms",
            f"{s.p99_latency_ms}ms",
            str(s.avg_output_tokens),
            f"${s.total_cost_usd:.4f}",
            f"[red]{errors}[/red]" if s.error_rate else errors,
        )
    console.print(table)

    if benchmark.winner is None:
        console.print(f"[dim]{len(benchmark.results)} runs, no successful model to recommend.[/dim]")
        return
    winner = benchmark.winner
    console.print(
        Panel(
            f"[dim]Fastest    :[/dim] [white]{escape(winner.fastest)}[/white]\n"
            f"[dim]Cheapest   :[/dim] [white]{escape(winner.cheapest)}[/white]\n"
            f"[dim]Best value :[/dim] [white]{escape(winner.best_value)}[/white]\n\n"
            f"{escape(winner.summary)}",
            title=_label("RECOMMENDATION", "green"),
            border_style="green",
            padding=(1, 2),
        )
    )
    console.print()


def saved(path: str) -> None:
    console.print(f"[dim]Results saved to {escape(path)}[/dim]")
