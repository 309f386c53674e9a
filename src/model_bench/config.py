# config.py
# Runtime configuration. Values come from the environment and .env files;
# every other module reads settings through Config.

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from model_bench.errors import ConfigurationError

_env_loaded = False


def _load_dotenv() -> None:
    """
    Load .env from the working directory, then the home directory.

    Existing environment variables always win over .env values.
    """
    global _env_loaded
    if _env_loaded:
        return
    for path in (Path.cwd() / ".env", Path.home() / ".env"):
        if path.exists():
            load_dotenv(path, override=False)
    _env_loaded = True


class Config(BaseModel):
    """Settings for one agent run and its provider calls."""

    step_budget: int = Field(default=8, ge=0, description="Maximum agent iterations.")
    max_output_tokens: int = Field(default=2048, gt=0, description="Token cap for agent replies.")
    tool_max_tokens: int = Field(default=1024, gt=0, description="Token cap for tool-issued calls.")
    http_timeout: float = Field(default=60.0, gt=0, description="Per-request timeout in seconds.")


def load_config(**overrides: object) -> Config:
    """Build a Config from .env + environment, then apply explicit overrides."""
    _load_dotenv()
    values: dict[str, object] = {}
    if os.getenv("MODEL_BENCH_MAX_STEPS"):
        values["step_budget"] = os.environ["MODEL_BENCH_MAX_STEPS"]
    if os.getenv("MODEL_BENCH_HTTP_TIMEOUT"):
        values["http_timeout"] = os.environ["MODEL_BENCH_HTTP_TIMEOUT"]
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return Config(**values)
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err["loc"])
        raise ConfigurationError(f"Invalid configuration ({fields}): {exc.errors()[0]['msg']}") from exc
