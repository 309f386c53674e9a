import pytest

from model_bench import config
from model_bench.providers import PROVIDERS


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """No real vendor keys and no .env files leak into a test."""
    for cfg in PROVIDERS.values():
        monkeypatch.delenv(cfg.env_key, raising=False)
    monkeypatch.delenv("MODEL_BENCH_MAX_STEPS", raising=False)
    monkeypatch.delenv("MODEL_BENCH_HTTP_TIMEOUT", raising=False)
    monkeypatch.setattr(config, "_env_loaded", True)
