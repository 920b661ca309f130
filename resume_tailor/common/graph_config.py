"""
Per-Step Graph Configuration.

Each task graph step has its own iteration bound and sampling temperature,
with environment variable overrides for experimentation.

Usage:
    from resume_tailor.common.graph_config import get_graph_config

    config = get_graph_config("job_title")
    config.max_iterations  # 3

    # Environment variable overrides:
    # TAILOR_MAX_ITERATIONS_job_title=2  -> fewer review cycles
    # TAILOR_TEMPERATURE_summary_writer=0.5
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Dict, Optional

from resume_tailor.common.config import Settings

logger = logging.getLogger(__name__)

# Bounds every critique loop may be configured within
MIN_ITERATIONS = 1
MAX_ITERATIONS_CEILING = 3


@dataclass(frozen=True)
class GraphConfig:
    """
    Configuration for a single graph step.

    Attributes:
        max_iterations: Revise cycles (or JSON attempts) before giving up
        temperature: Sampling temperature for the step's agents
    """

    max_iterations: int = 2
    temperature: float = Settings.ANALYTICAL_TEMPERATURE


# ===== DEFAULT STEP CONFIGURATIONS =====

GRAPH_CONFIGS: Dict[str, GraphConfig] = {
    # JD Refinement
    "jd_refinement": GraphConfig(max_iterations=2, temperature=0.3),
    # Job Title
    "job_title": GraphConfig(max_iterations=3, temperature=0.3),
    # Summary
    "summary": GraphConfig(max_iterations=2, temperature=Settings.WRITER_TEMPERATURE),
    # Experience Tailoring sub-stages
    "description_fact_check": GraphConfig(max_iterations=2, temperature=0.5),
    "description_relevance": GraphConfig(max_iterations=2, temperature=0.5),
    "integrity_audit": GraphConfig(max_iterations=2, temperature=0.4),
    "achievements_sorting": GraphConfig(max_iterations=3, temperature=0.2),
    "tech_stack_sorting": GraphConfig(max_iterations=3, temperature=0.2),
    # Skills
    "skills_sorting": GraphConfig(max_iterations=3, temperature=0.2),
    "skills_extraction": GraphConfig(max_iterations=1, temperature=0.2),
    # Cover Letter
    "cover_letter": GraphConfig(max_iterations=2, temperature=Settings.WRITER_TEMPERATURE),
}


def _get_env_override(step_name: str, setting: str) -> Optional[str]:
    """
    Get environment variable override for a step setting.

    Checks for environment variable in format: TAILOR_{SETTING}_{step_name}
    Example: TAILOR_MAX_ITERATIONS_job_title
    """
    value = os.getenv(f"TAILOR_{setting}_{step_name}")
    if value:
        logger.debug(f"Env override TAILOR_{setting}_{step_name}={value}")
    return value


def get_graph_config(step_name: str) -> GraphConfig:
    """
    Get configuration for a step, with environment variable overrides.

    Unknown steps get the default GraphConfig. Iteration overrides are
    clamped to [1, 3] so no loop can become unbounded through configuration.

    Args:
        step_name: The graph step identifier (e.g., "summary")

    Returns:
        GraphConfig with all settings resolved
    """
    config = GRAPH_CONFIGS.get(step_name, GraphConfig())

    iterations_override = _get_env_override(step_name, "MAX_ITERATIONS")
    if iterations_override:
        try:
            iterations = int(iterations_override)
            config = replace(
                config,
                max_iterations=max(MIN_ITERATIONS, min(MAX_ITERATIONS_CEILING, iterations)),
            )
        except ValueError:
            logger.warning(f"Invalid TAILOR_MAX_ITERATIONS_{step_name}: {iterations_override}")

    temperature_override = _get_env_override(step_name, "TEMPERATURE")
    if temperature_override:
        try:
            config = replace(config, temperature=float(temperature_override))
        except ValueError:
            logger.warning(f"Invalid TAILOR_TEMPERATURE_{step_name}: {temperature_override}")

    return config
