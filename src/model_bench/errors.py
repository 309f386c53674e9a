# errors.py
# Exception taxonomy for the benchmark agent.
#
# Only ConfigurationError and ProviderError ever escape a run. ToolError is
# absorbed by the harness and fed back to the model as an observation.


class BenchError(Exception):
    """Base class for all model-bench errors."""


class ConfigurationError(BenchError):
    """Raised at setup time: no credential configured, invalid settings, duplicate tool names."""


class ProviderError(BenchError):
    """Raised when a single completion call fails. Propagates out of the run."""

    def __init__(self, status: int | None, message: str) -> None:
        self.status = status
        self.message = message
        prefix = f"HTTP {status}" if status is not None else "transport error"
        super().__init__(f"{prefix}: {message}")


class ToolError(BenchError):
    """Raised by a tool when it cannot produce an observation."""
