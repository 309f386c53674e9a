# harness.py
# Benchmark Agent Harness
#
# The harness is the kernel. The model is a passive responder. This class
# owns the transcript, the step loop, tool dispatch, and termination.
#
# Control flow:
#   goal + context → seed transcript → model reply → parse directive
#   → Final Answer: stop
#   → Action: dispatch one tool → observation → next reply
#   → neither: corrective nudge → next reply
#   → step budget exhausted: synthesized summary answer
#
# All terminal output is delegated to display.py. No formatting here.

from typing import Iterable, Optional

from model_bench import display
from model_bench.config import Config, load_config
from model_bench.errors import ConfigurationError
from model_bench.models import AgentResult, FinalAnswer, Step, ToolCall, Transcript
from model_bench.parser import parse_agent_response
from model_bench.providers import PROVIDERS, CompletionProvider, VendorProvider, get_api_key, get_available_providers
from model_bench.registry import Tool, ToolRegistry

DEFAULT_STEP_BUDGET = 8


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

AGENT_SYSTEM_PROMPT = """\
You are a benchmark analysis agent. You investigate, test, and analyze AI models.

Available tools:
{tools}

Format (exactly):

Thought: <your reasoning>
Action: <tool_name>
Action Input: <input for the tool>

When done:

Thought: <final reasoning>
Final Answer: <your comprehensive answer>

Rules:
- One tool per response
- Be thorough: test multiple models, compare, compute statistics
- Final Answer should have clear recommendations
- Do NOT combine Action and Final Answer\
"""

NUDGE = "Use a tool or provide Final Answer."
CONTINUE = "Continue."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def build_system_prompt(registry: ToolRegistry) -> str:
    return AGENT_SYSTEM_PROMPT.format(tools=registry.describe())


def build_goal_message(goal: str, context: Optional[str] = None) -> str:
    context_block = f"\n\nContext:\n{context}" if context else ""
    return f"Goal: {goal}{context_block}\n\nBegin."


def summarize_exhausted_run(steps: list[Step]) -> str:
    """Fallback answer when the budget runs out without a Final Answer."""
    if not steps:
        return "Agent reached maximum steps without executing tools."
    used = list(dict.fromkeys(step.action for step in steps))
    return f"Agent completed {len(steps)} steps. Tools used: {', '.join(used)}."


# ---------------------------------------------------------------------------
# Harness
# ---------------------------------------------------------------------------


class AgentHarness:
    """
    Bounded ReAct loop over one completion provider and a caller-supplied
    tool set.

    The harness keeps no state between runs apart from a read-only handle on
    the last run's transcript, so one instance may serve many runs.

    Example:
        harness = AgentHarness.from_environment()
        result = harness.run("List models", create_benchmark_tools(), step_budget=4)
    """

    def __init__(
        self,
        provider: CompletionProvider,
        *,
        model_id: str,
        credential: str,
        provider_label: str = "",
        max_output_tokens: int = 2048,
        verbose: bool = True,
    ) -> None:
        self._provider = provider
        self._model_id = model_id
        self._credential = credential
        self._max_output_tokens = max_output_tokens
        self.provider_label = provider_label or model_id
        self._display = display if verbose else display.Quiet()
        self._transcript: Optional[Transcript] = None

    @classmethod
    def from_environment(
        cls,
        config: Optional[Config] = None,
        api_keys: Optional[dict[str, str]] = None,
        verbose: bool = True,
    ) -> "AgentHarness":
        """
        Use the first vendor with a configured credential and its first model.

        Raises ConfigurationError before any step budget is consumed if no
        vendor is configured.
        """
        config = config or load_config()
        available = get_available_providers(api_keys)
        if not available:
            raise ConfigurationError(
                "No LLM provider configured. Set ANTHROPIC_API_KEY, OPENAI_API_KEY, or GEMINI_API_KEY."
            )
        provider_key = available[0]
        provider_cfg = PROVIDERS[provider_key]
        model = provider_cfg.models[0]
        return cls(
            VendorProvider(provider_key, timeout=config.http_timeout),
            model_id=model.id,
            credential=get_api_key(provider_key, api_keys),
            provider_label=f"{model.label} ({provider_cfg.name})",
            max_output_tokens=config.max_output_tokens,
            verbose=verbose,
        )

    @property
    def transcript(self) -> Optional[Transcript]:
        """Transcript of the most recent run, for audit and debugging."""
        return self._transcript

    # ------------------------------------------------------------------
    # Tool dispatch
    # ------------------------------------------------------------------

    def _dispatch(self, registry: ToolRegistry, call: ToolCall) -> Step:
        """
        Execute exactly one tool for one ToolCall directive.

        Tool failures and unknown tool names become observation text; the
        loop is never aborted here.
        """
        self._display.react_thought(call.thought)
        self._display.react_action(call.action, call.action_input)

        tool = registry.lookup(call.action)
        if tool is None:
            self._display.unknown_tool(call.action)
            observation = f"Unknown tool: {call.action}. Available: {', '.join(registry.names())}"
        else:
            try:
                observation = str(tool.execute(call.action_input))
            except Exception as exc:
                self._display.tool_failed(tool.name, str(exc))
                observation = f"Tool error ({tool.name}): {exc}"

        self._display.react_observation(observation)
        return Step(
            thought=call.thought,
            action=call.action,
            action_input=call.action_input,
            observation=observation,
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def run(
        self,
        goal: str,
        tools: Iterable[Tool],
        context: Optional[str] = None,
        step_budget: int = DEFAULT_STEP_BUDGET,
    ) -> AgentResult:
        """
        Drive the loop until a Final Answer or budget exhaustion.

        Tool failures, unknown tools and unparseable replies are absorbed into
        the trace. ProviderError propagates; ConfigurationError is raised
        before the first model call.
        """
        if step_budget < 0:
            raise ValueError(f"step_budget must be >= 0, got {step_budget}")

        registry = ToolRegistry(tools)
        system_prompt = build_system_prompt(registry)
        transcript = Transcript()
        transcript.append("user", build_goal_message(goal, context))
        self._transcript = transcript
        steps: list[Step] = []

        self._display.run_start(goal, step_budget, registry.names())

        for iteration in range(step_budget):
            self._display.iteration_start(iteration, step_budget)

            reply = self._provider.complete(
                system_prompt,
                tuple(transcript),
                self._model_id,
                self._credential,
                self._max_output_tokens,
            )
            self._display.model_reply(reply)
            transcript.append("assistant", reply.text)
            directive = parse_agent_response(reply.text)

            if isinstance(directive, FinalAnswer):
                self._display.react_thought(directive.thought)
                return AgentResult(
                    steps=steps,
                    final_answer=directive.answer,
                    total_steps=iteration + 1,
                    provider_label=self.provider_label,
                )

            if isinstance(directive, ToolCall):
                step = self._dispatch(registry, directive)
                steps.append(step)
                transcript.append("user", f"Observation: {step.observation}\n\n{CONTINUE}")
            else:
                self._display.unparseable_reply(directive.raw)
                transcript.append("user", NUDGE)

        self._display.budget_exhausted(step_budget)
        return AgentResult(
            steps=steps,
            final_answer=summarize_exhausted_run(steps),
            total_steps=step_budget,
            provider_label=self.provider_label,
        )


def run_agent(
    goal: str,
    tools: Iterable[Tool],
    context: Optional[str] = None,
    step_budget: int = DEFAULT_STEP_BUDGET,
    harness: Optional[AgentHarness] = None,
) -> AgentResult:
    """Run one agent; builds a harness from the environment when none is given."""
    harness = harness or AgentHarness.from_environment()
    return harness.run(goal, tools, context=context, step_budget=step_budget)
