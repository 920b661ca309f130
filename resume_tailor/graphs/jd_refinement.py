"""
JD Refinement Graph.

Condenses a raw job description into four fixed sections
(position-title, core-responsibilities, desired-qualifications,
required-skills). Every later graph consumes the refined JD.

Flow: Refiner -> [format check + Reviewer -> Refiner]* (max 2 revisions)
"""

import re
from typing import Optional

from resume_tailor.common.agent import Critique, ReviewVerdict
from resume_tailor.common.config import Settings
from resume_tailor.common.graph_config import GraphConfig, get_graph_config
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.critique_loop import run_critique_loop
from resume_tailor.graphs.prompts.jd_prompts import (
    REFINER_SYSTEM_PROMPT,
    REVIEWER_SYSTEM_PROMPT,
    build_refine_prompt,
    build_review_prompt,
    build_revision_prompt,
)
from resume_tailor.graphs.validators import validate_jd_format

GRAPH_NAME = "jd_refinement"


def clean_refined_jd(text: str) -> str:
    """Drop echoed wrapper labels the refiner sometimes repeats back."""
    result = (text or "").strip()
    result = re.split(r"\n\s*Critiques from Reviewer:", result)[0]
    result = re.sub(r"^\s*Refined JD:\s*", "", result)
    return result.strip()


class JDRefinementGraph:
    """Refine a raw job description into the four-section brief."""

    def __init__(self, context: GraphContext, config: Optional[GraphConfig] = None):
        self.context = context
        self.config = config or get_graph_config(GRAPH_NAME)
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(self, job_description: str) -> str:
        """
        Refine the job description.

        Returns:
            Refined JD text (best available draft, even if never approved)
        """
        if not job_description or not job_description.strip():
            self._logger.warning("Empty job description, nothing to refine")
            return ""

        ctx = self.context
        refiner = ctx.agent("jd_refiner", REFINER_SYSTEM_PROMPT, self.config.temperature)
        reviewer = ctx.agent("jd_reviewer", REVIEWER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        ctx.emit("Analyzing job description...")
        draft = clean_refined_jd(await ctx.call(refiner, build_refine_prompt(job_description)))

        async def review(current: str) -> ReviewVerdict:
            ctx.emit("Validating format...")
            report = validate_jd_format(current)
            verdict = await ctx.review(reviewer, build_review_prompt(current, report.render()))
            if verdict.approved and not report.valid:
                self._logger.debug("Reviewer approved a draft that fails the format check")
                return Critique(reason=report.issues[0], details=report.render())
            return verdict

        async def revise(current: str, critique: Critique) -> str:
            ctx.emit("Refining job description...")
            revised = await ctx.call(refiner, build_revision_prompt(job_description, current, critique.feedback))
            return clean_refined_jd(revised)

        outcome = await run_critique_loop(
            draft,
            review,
            max_iterations=self.config.max_iterations,
            revise=revise,
            accept_corrections=False,
            logger=self._logger,
        )
        self._logger.info(
            f"JD refined ({len(outcome.draft)} chars, approved={outcome.approved}, "
            f"revisions={outcome.iterations})"
        )
        return outcome.draft


async def refine_job_description(job_description: str, context: GraphContext) -> str:
    """Convenience function to run the JD refinement graph."""
    return await JDRefinementGraph(context).run(job_description)
