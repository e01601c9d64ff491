"""
Application configuration using pydantic-settings.

Loads oracle/logging settings and solver policy thresholds from
environment variables and .env files.
"""

import logging
import sys
from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Oracle (Ollama CLI)
    oracle_model_name: str = Field(
        default="gpt-oss:20b",
        description="Ollama model name used as the reasoning oracle",
    )
    oracle_command: str = Field(
        default="ollama",
        description="Path to the Ollama executable",
    )
    oracle_timeout: int = Field(
        default=120,
        description="Timeout in seconds for oracle requests",
    )
    oracle_max_retries: int = Field(
        default=1,
        description="Number of retries on oracle failure",
    )

    # Application
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode (logs prompt previews)",
    )


class SolverPolicy(BaseSettings):
    """
    Numeric thresholds that drive the solver engine.

    Every field can be overridden with a ``SOLVER_`` prefixed environment
    variable, e.g. ``SOLVER_EVAL_BUDGET=3``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SOLVER_",
        case_sensitive=False,
        extra="ignore",
    )

    # Confidence judgment
    confidence_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    volatility_threshold: float = Field(default=0.4, ge=0.0, le=1.0)

    # Hypothesis / decomposition
    max_hypotheses: int = Field(default=5, ge=1)
    decompose_threshold: int = Field(default=3, ge=0)
    max_sub_depth: int = Field(default=3, ge=0)

    # Gap management
    max_gap_rounds: int = Field(default=2, ge=0)
    min_evidence: int = Field(default=2, ge=0)

    # Evidence independence
    same_group_weight: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Weight of every evidence item after the first in one independence group",
    )

    # Continuation judgment
    continuation_threshold: float = Field(default=0.1, ge=0.0)

    # Known-fact confidence propagation (None disables the discount)
    low_confidence_bound: float | None = Field(default=0.5, ge=0.0, le=1.0)

    # Re-evaluation
    hypothesis_decay_rate: float = Field(default=0.9, ge=0.0, le=1.0)
    supersede_threshold: float = Field(default=0.2, ge=0.0, le=1.0)

    # Accumulated hypothesis limit (defaults to 3 * max_hypotheses)
    max_accumulated_hypotheses: int | None = Field(default=None, ge=1)

    # Mid-turn gap injection
    max_mid_turn_gaps: int = Field(default=3, ge=0)
    inferred_confidence: float = Field(default=0.3, ge=0.0, le=1.0)

    # Hypothesis selection
    eval_budget: int | None = Field(
        default=None,
        ge=0,
        description="Evaluations per turn; None evaluates every new hypothesis",
    )
    exploration_constant: float = Field(default=1.41, ge=0.0)

    @model_validator(mode="after")
    def _default_accumulated_limit(self) -> "SolverPolicy":
        if self.max_accumulated_hypotheses is None:
            self.max_accumulated_hypotheses = self.max_hypotheses * 3
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()


def configure_logging(level: str | None = None) -> None:
    """Configure application logging."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, level or settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
