# models.py
# Data contracts for the benchmark agent.
# No business logic lives here. Pure schema and validation.

from typing import Annotated, Iterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Record(BaseModel):
    """Immutable once created."""

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Conversation
# ---------------------------------------------------------------------------


class Message(_Record):
    """One turn of the conversation replayed to the completion provider."""

    role: Literal["user", "assistant"]
    content: str


class Transcript:
    """
    Ordered, append-only message history.

    Insertion order is conversation order and is replayed verbatim to the
    completion provider on every step.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    def append(self, role: str, content: str) -> Message:
        message = Message(role=role, content=content)
        self._messages.append(message)
        return message

    def as_dicts(self) -> list[dict]:
        return [message.model_dump() for message in self._messages]

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]


class Step(_Record):
    """One recorded tool-invocation round in the audit trace."""

    thought: str = ""
    action: str = Field(..., description="Tool name requested by the model.")
    action_input: str = ""
    observation: str = Field(default="", description="Tool output or failure text.")


# ---------------------------------------------------------------------------
# Directives: parsed interpretation of one model reply
# ---------------------------------------------------------------------------


class ToolCall(_Record):
    kind: Literal["tool_call"] = "tool_call"
    thought: str = ""
    action: str
    action_input: str = ""


class FinalAnswer(_Record):
    kind: Literal["final_answer"] = "final_answer"
    thought: str = ""
    answer: str


class Unparseable(_Record):
    kind: Literal["unparseable"] = "unparseable"
    thought: str = ""
    raw: str


Directive = Annotated[Union[ToolCall, FinalAnswer, Unparseable], Field(discriminator="kind")]


class AgentResult(_Record):
    """Returned once, at loop termination."""

    steps: list[Step] = Field(default_factory=list)
    final_answer: str
    total_steps: int = Field(..., ge=0)
    provider_label: str = ""


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class Completion(_Record):
    """A single assistant reply plus usage and latency metadata."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    latency_ms: int = 0


class ModelDef(_Record):
    id: str
    label: str
    input_cost: float = Field(..., description="USD per 1K input tokens.")
    output_cost: float = Field(..., description="USD per 1K output tokens.")


class ProviderConfig(_Record):
    name: str
    env_key: str
    models: list[ModelDef] = Field(..., min_length=1)


class CatalogModel(ModelDef):
    """A ModelDef flattened with the vendor it belongs to."""

    provider: str
    provider_name: str


# ---------------------------------------------------------------------------
# Direct benchmark runs
# ---------------------------------------------------------------------------


class PromptCase(_Record):
    name: str
    prompt: str
    rubric: list[str] = Field(default_factory=list)
    max_tokens: Optional[int] = Field(default=None, gt=0)


class ModelResult(_Record):
    """One prompt sent to one model. Failed runs carry ``error`` and zeroed metrics."""

    model: str
    model_id: str
    provider: str
    prompt: str
    prompt_name: str
    response: str = ""
    latency_ms: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    cost_usd: float = 0.0
    error: Optional[str] = None


class ModelStats(_Record):
    model: str
    provider: str
    total_runs: int
    avg_latency_ms: int
    p50_latency_ms: int
    p95_latency_ms: int
    p99_latency_ms: int
    avg_input_tokens: int
    avg_output_tokens: int
    total_cost_usd: float
    cost_per_1k_tokens: float
    error_rate: float


class WinnerRecommendation(_Record):
    fastest: str
    cheapest: str
    best_value: str
    summary: str


class BenchmarkResult(_Record):
    timestamp: str
    results: list[ModelResult]
    stats: list[ModelStats]
    models: list[str]
    providers: list[str]
    prompt_count: int
    winner: Optional[WinnerRecommendation] = None
