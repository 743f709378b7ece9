"""
Engine Configuration

Settings for the dialogue engine and its text-generation client, read from the
environment (and a local .env file when present).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings for a DialogueEngine."""
    openai_api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    # Text-generation call behavior
    timeout_seconds: float = 20.0
    max_attempts: int = 3
    backoff_initial_seconds: float = 0.75
    backoff_max_seconds: float = 8.0
    # Tutoring policy
    understanding_check_interval: int = 4
    scaffolding_struggle_threshold: int = 2
    confidence_window: int = 5
    selection_seed: Optional[int] = None

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """
        Build a config from environment variables.

        Unset variables fall back to the dataclass defaults.
        """
        load_dotenv()
        seed = os.getenv("SELECTION_SEED")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            model=os.getenv("OPENAI_MODEL", cls.model),
            timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", cls.timeout_seconds),
            max_attempts=max(1, _env_int("LLM_MAX_ATTEMPTS", cls.max_attempts)),
            backoff_initial_seconds=_env_float("LLM_BACKOFF_INITIAL_SECONDS", cls.backoff_initial_seconds),
            backoff_max_seconds=_env_float("LLM_BACKOFF_MAX_SECONDS", cls.backoff_max_seconds),
            understanding_check_interval=max(1, _env_int("UNDERSTANDING_CHECK_INTERVAL", cls.understanding_check_interval)),
            scaffolding_struggle_threshold=max(1, _env_int("SCAFFOLDING_STRUGGLE_THRESHOLD", cls.scaffolding_struggle_threshold)),
            confidence_window=max(1, _env_int("CONFIDENCE_WINDOW", cls.confidence_window)),
            selection_seed=int(seed) if seed and seed.strip() else None,
        )
