"""
Per-Step Completion Configuration.

Every completion call in the pipeline (the job-description classifier, the
eight signal sources and the final synthesis) has its own step config with
max_tokens, temperature and timeout, overridable per step from the
environment for experimentation.

Usage:
    from src.common.llm_config import get_step_config

    config = get_step_config("synthesis")
    config.temperature      # 0.1
    config.max_tokens       # 3000

    # Environment variable overrides:
    # LLM_TEMPERATURE_market_sentiment=0.4
    # LLM_MAX_TOKENS_synthesis=4000
    # LLM_TIMEOUT_cost_of_living=8
"""

import os
import logging
from dataclasses import dataclass, replace
from typing import Optional, Dict

logger = logging.getLogger(__name__)

# Signal fetches are bounded so one slow source cannot stall the fan-out
MIN_SIGNAL_TIMEOUT_SECONDS = 5.0
MAX_SIGNAL_TIMEOUT_SECONDS = 15.0

SYNTHESIS_STEP = "synthesis"


@dataclass
class StepConfig:
    """
    Configuration for a single completion step.

    Attributes:
        max_tokens: Upper bound on the completion length
        temperature: Sampling temperature (0.0 for data retrieval)
        timeout_seconds: Maximum time to wait for the completion
    """

    max_tokens: int = 1000
    temperature: float = 0.0
    timeout_seconds: float = MAX_SIGNAL_TIMEOUT_SECONDS


# ===== DEFAULT STEP CONFIGURATIONS =====

STEP_CONFIGS: Dict[str, StepConfig] = {
    # Context assembly: job description classification
    "job_analysis": StepConfig(max_tokens=1200, temperature=0.1),

    # Signal sources (data retrieval)
    "labor_statistics": StepConfig(max_tokens=800),
    "cost_of_living": StepConfig(max_tokens=800),
    "job_market": StepConfig(max_tokens=1200),
    "company_intelligence": StepConfig(max_tokens=1000),
    "economic_indicators": StepConfig(max_tokens=800),
    "industry_trends": StepConfig(max_tokens=1000, temperature=0.1),
    "market_sentiment": StepConfig(max_tokens=800, temperature=0.2),
    "competitor_analysis": StepConfig(max_tokens=1000, temperature=0.1),

    # Final synthesis: the single serialization point
    SYNTHESIS_STEP: StepConfig(max_tokens=3000, temperature=0.1, timeout_seconds=120.0),
}


def _get_env_override(step_name: str, setting: str) -> Optional[str]:
    """
    Get environment variable override for a step setting.

    Checks for environment variable in format: LLM_{SETTING}_{step_name}
    Example: LLM_TEMPERATURE_synthesis, LLM_TIMEOUT_job_market
    """
    env_var = f"LLM_{setting}_{step_name}"
    value = os.getenv(env_var)
    if value:
        logger.debug(f"Using env override {env_var}={value}")
    return value


def get_step_config(step_name: str) -> StepConfig:
    """
    Get configuration for a step, with environment variable overrides.

    Returns a copy, so callers may adjust it without touching STEP_CONFIGS.
    Unknown steps get the default signal config. Signal steps (everything
    except synthesis) have their timeout bounded to 5-15 seconds.

    Environment Variable Overrides:
        - LLM_MAX_TOKENS_{step_name}
        - LLM_TEMPERATURE_{step_name}
        - LLM_TIMEOUT_{step_name}

    Example:
        >>> get_step_config("market_sentiment").temperature
        0.2
    """
    config = replace(STEP_CONFIGS.get(step_name, StepConfig()))

    tokens_override = _get_env_override(step_name, "MAX_TOKENS")
    if tokens_override:
        try:
            config.max_tokens = int(tokens_override)
        except ValueError:
            logger.warning(f"Invalid max_tokens override for {step_name}: {tokens_override}")

    temperature_override = _get_env_override(step_name, "TEMPERATURE")
    if temperature_override:
        try:
            config.temperature = float(temperature_override)
        except ValueError:
            logger.warning(f"Invalid temperature override for {step_name}: {temperature_override}")

    timeout_override = _get_env_override(step_name, "TIMEOUT")
    if timeout_override:
        try:
            config.timeout_seconds = float(timeout_override)
        except ValueError:
            logger.warning(f"Invalid timeout override for {step_name}: {timeout_override}")

    if step_name != SYNTHESIS_STEP:
        config.timeout_seconds = min(
            max(config.timeout_seconds, MIN_SIGNAL_TIMEOUT_SECONDS),
            MAX_SIGNAL_TIMEOUT_SECONDS,
        )

    return config
