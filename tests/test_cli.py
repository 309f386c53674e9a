from unittest.mock import MagicMock, patch

from typer.testing import CliRunner

from model_bench.benchmark import compute_model_stats, pick_winner
from model_bench.cli import app
from model_bench.errors import ProviderError
from model_bench.harness import AgentHarness
from model_bench.models import BenchmarkResult, Completion, ModelResult

runner = CliRunner()


def _harness(*replies: str) -> AgentHarness:
    provider = MagicMock()
    provider.complete.side_effect = [Completion(text=r) for r in replies]
    return AgentHarness(provider, model_id="m", credential="k", provider_label="Fake (Test)", verbose=False)


def test_unknown_command_exits_1():
    result = runner.invoke(app, ["frobnicate"])
    assert result.exit_code == 1
    assert "Unknown command: frobnicate" in result.output


def test_known_command_still_resolves():
    result = runner.invoke(app, ["providers"])
    assert result.exit_code == 0


def test_agent_without_credentials_exits_1():
    result = runner.invoke(app, ["agent"])
    assert result.exit_code == 1
    assert "No LLM provider configured" in result.output


def test_providers_lists_catalog():
    result = runner.invoke(app, ["providers"])
    assert result.exit_code == 0
    assert "Anthropic" in result.output
    assert "Gemini" in result.output
    assert "No API keys found" in result.output


def test_compare_needs_two_models():
    result = runner.invoke(app, ["compare", "haiku"])
    assert result.exit_code == 1


def test_compare_without_models_exits_1():
    result = runner.invoke(app, ["compare"])
    assert result.exit_code == 1
    assert "Need at least 2 models" in result.output


def test_agent_prints_trace_and_answer():
    harness = _harness(
        "Thought: look\nAction: list_available_models\nAction Input:",
        "Thought: done\nFinal Answer: Haiku is best value",
    )
    with patch.object(AgentHarness, "from_environment", return_value=harness):
        result = runner.invoke(app, ["agent", "--goal", "List models", "--max-steps", "3"])

    assert result.exit_code == 0
    assert "Haiku is best value" in result.output
    assert "list_available_models" in result.output


def test_compare_builds_goal_from_models():
    harness = _harness("Final Answer: tie")
    with patch.object(AgentHarness, "from_environment", return_value=harness), patch.object(
        harness, "run", wraps=harness.run
    ) as run:
        result = runner.invoke(app, ["compare", "haiku", "gpt-4o-mini", "--prompt", "Explain TCP"])

    assert result.exit_code == 0
    goal = run.call_args.args[0]
    assert "haiku, gpt-4o-mini" in goal
    assert 'Use this test prompt: "Explain TCP"' in goal
    assert [t.name for t in run.call_args.args[1]][0] == "list_available_models"


def test_provider_failure_exits_1():
    provider = MagicMock()
    provider.complete.side_effect = ProviderError(401, "invalid x-api-key")
    harness = AgentHarness(provider, model_id="m", credential="k", verbose=False)
    with patch.object(AgentHarness, "from_environment", return_value=harness):
        result = runner.invoke(app, ["agent"])

    assert result.exit_code == 1
    assert "invalid x-api-key" in result.output


def test_invalid_setting_halts_before_run(monkeypatch):
    monkeypatch.setenv("MODEL_BENCH_MAX_STEPS", "eight")
    for command in (["agent"], ["providers"], ["run"]):
        result = runner.invoke(app, command)
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)


# ---------------------------------------------------------------------------
# Direct benchmark
# ---------------------------------------------------------------------------


def _benchmark():
    run = ModelResult(
        model="Haiku 4.5",
        model_id="claude-haiku-4-5-20251001",
        provider="Anthropic",
        prompt="hi",
        prompt_name="greet",
        response="hello",
        latency_ms=120,
        output_tokens=5,
        cost_usd=0.0001,
    )
    stats = compute_model_stats([run])
    return BenchmarkResult(
        timestamp="2026-01-01T00:00:00+00:00",
        results=[run],
        stats=stats,
        models=["Haiku 4.5"],
        providers=["Anthropic"],
        prompt_count=1,
        winner=pick_winner(stats),
    )


def test_run_without_credentials_exits_1():
    result = runner.invoke(app, ["run"])
    assert result.exit_code == 1
    assert "No API keys found" in result.output


@patch("model_bench.cli.run_benchmark")
def test_run_passes_selection_and_saves_results(mock_run, tmp_path):
    mock_run.return_value = _benchmark()
    out = tmp_path / "results.json"

    result = runner.invoke(app, ["run", "--models", "haiku, gpt-4o", "--providers", "anthropic", "--output", str(out)])

    assert result.exit_code == 0
    kwargs = mock_run.call_args.kwargs
    assert kwargs["models"] == ["haiku", "gpt-4o"]
    assert kwargs["providers"] == ["anthropic"]
    assert kwargs["prompts"] is None
    assert BenchmarkResult.model_validate_json(out.read_text()) == mock_run.return_value
    assert "RECOMMENDATION" in result.output
    assert "Haiku 4.5" in result.output


def test_run_with_unreadable_prompts_exits_1(tmp_path):
    path = tmp_path / "prompts.json"
    path.write_text("not json")
    result = runner.invoke(app, ["run", "--prompts", str(path)])
    assert result.exit_code == 1
    assert "Invalid prompts file" in result.output
