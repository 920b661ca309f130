"""
Job Title Graph.

Flow: Analyst -> Writer -> [Reviewer -> corrected title]* (max 3 revisions)

The reviewer supplies corrections directly ("CRITIQUE: <issue>" followed by
the corrected title). Markdown emphasis is stripped from the final title
unconditionally.
"""

from typing import List, Optional

from resume_tailor.common.agent import Critique, ReviewVerdict
from resume_tailor.common.config import Settings
from resume_tailor.common.graph_config import GraphConfig, get_graph_config
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.critique_loop import run_critique_loop
from resume_tailor.graphs.prompts.job_title_prompts import (
    ANALYST_SYSTEM_PROMPT,
    REVIEWER_SYSTEM_PROMPT,
    WRITER_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_review_prompt,
    build_writer_prompt,
)
from resume_tailor.graphs.types import ResumeData
from resume_tailor.graphs.validators import strip_markdown_emphasis

GRAPH_NAME = "job_title"


def _first_line(text: str) -> str:
    for line in (text or "").splitlines():
        if line.strip():
            return line.strip()
    return ""


def recent_roles(resume: ResumeData, limit: int = 2) -> List[str]:
    """The first work experiences rendered as "position at organization"."""
    return [
        f"{entry.position} at {entry.organization}"
        for entry in resume.work_experience[:limit]
    ]


class JobTitleGraph:
    """Generate a resume headline title for the target job."""

    def __init__(self, context: GraphContext, config: Optional[GraphConfig] = None):
        self.context = context
        self.config = config or get_graph_config(GRAPH_NAME)
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(self, refined_jd: str, resume: ResumeData) -> str:
        ctx = self.context
        analyst = ctx.agent("title_analyst", ANALYST_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        writer = ctx.agent("title_writer", WRITER_SYSTEM_PROMPT, self.config.temperature)
        reviewer = ctx.agent("title_reviewer", REVIEWER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        ctx.emit("Analyzing target role...")
        analysis = await ctx.call(
            analyst, build_analysis_prompt(refined_jd, resume.summary, recent_roles(resume))
        )

        ctx.emit("Writing job title...")
        title = strip_markdown_emphasis(_first_line(await ctx.call(writer, build_writer_prompt(analysis, refined_jd))))

        async def review(current: str) -> ReviewVerdict:
            ctx.emit("Reviewing job title...")
            verdict = await ctx.review(reviewer, build_review_prompt(current, analysis))
            if isinstance(verdict, Critique) and verdict.corrected_payload:
                corrected = strip_markdown_emphasis(_first_line(verdict.corrected_payload))
                return Critique(reason=verdict.reason, corrected_payload=corrected or None, details=verdict.details)
            return verdict

        outcome = await run_critique_loop(
            title,
            review,
            max_iterations=self.config.max_iterations,
            accept_corrections=True,
            logger=self._logger,
        )

        final = strip_markdown_emphasis(outcome.draft) or resume.position
        self._logger.info(f"Job title: {final!r} (approved={outcome.approved}, revisions={outcome.iterations})")
        return final


async def generate_job_title(refined_jd: str, resume: ResumeData, context: GraphContext) -> str:
    """Convenience function to run the job title graph."""
    return await JobTitleGraph(context).run(refined_jd, resume)
