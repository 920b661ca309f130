"""
Cover Letter Graph.

Flow: Writer -> [fact-checking Reviewer -> Writer redraft]* (max 2 revisions)

The writer only sees facts from the (tailored) resume; the reviewer checks
the letter against the same candidate data.
"""

from typing import List, Optional

from resume_tailor.common.agent import Critique
from resume_tailor.common.config import Settings
from resume_tailor.common.graph_config import GraphConfig, get_graph_config
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.critique_loop import run_critique_loop
from resume_tailor.graphs.prompts.cover_letter_prompts import (
    REVIEWER_SYSTEM_PROMPT,
    WRITER_SYSTEM_PROMPT,
    build_review_prompt,
    build_rewrite_prompt,
    build_writer_prompt,
)
from resume_tailor.graphs.types import SkillGroup, WorkExperience

GRAPH_NAME = "cover_letter"


def build_candidate_context(
    name: str,
    summary: str,
    work_experiences: List[WorkExperience],
    skills: List[SkillGroup],
) -> str:
    """Render the candidate facts the letter may draw on."""
    experience = "; ".join(
        f"{entry.position} at {entry.organization}: {' '.join(entry.key_achievements)}".strip()
        for entry in work_experiences
    )
    skill_texts = ", ".join(skill.text for group in skills for skill in group.skills)
    return (
        f"CANDIDATE: {name}\n"
        f"SUMMARY: {summary}\n"
        f"EXPERIENCE: {experience or '(none)'}\n"
        f"SKILLS: {skill_texts or '(none)'}"
    )


class CoverLetterGraph:
    """Write a fact-checked cover letter."""

    def __init__(self, context: GraphContext, config: Optional[GraphConfig] = None):
        self.context = context
        self.config = config or get_graph_config(GRAPH_NAME)
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(
        self,
        refined_jd: str,
        job_title: str,
        name: str,
        summary: str,
        work_experiences: List[WorkExperience],
        skills: List[SkillGroup],
    ) -> str:
        ctx = self.context
        writer = ctx.agent("cover_letter_writer", WRITER_SYSTEM_PROMPT, self.config.temperature)
        reviewer = ctx.agent("cover_letter_reviewer", REVIEWER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        candidate_context = build_candidate_context(name, summary, work_experiences, skills)
        writer_prompt = build_writer_prompt(candidate_context, job_title, refined_jd)

        ctx.emit("Writing cover letter...")
        draft = (await ctx.call(writer, writer_prompt)).strip()

        async def review(current: str):
            ctx.emit("Fact-checking cover letter...")
            return await ctx.review(reviewer, build_review_prompt(current, candidate_context))

        async def revise(current: str, critique: Critique) -> str:
            ctx.emit("Revising cover letter...")
            return (await ctx.call(writer, build_rewrite_prompt(writer_prompt, current, critique.feedback))).strip()

        outcome = await run_critique_loop(
            draft,
            review,
            max_iterations=self.config.max_iterations,
            revise=revise,
            accept_corrections=False,
            logger=self._logger,
        )
        self._logger.info(
            f"Cover letter written ({len(outcome.draft.split())} words, approved={outcome.approved})"
        )
        return outcome.draft


async def generate_cover_letter(
    refined_jd: str,
    job_title: str,
    name: str,
    summary: str,
    work_experiences: List[WorkExperience],
    skills: List[SkillGroup],
    context: GraphContext,
) -> str:
    """Convenience function to run the cover letter graph."""
    return await CoverLetterGraph(context).run(refined_jd, job_title, name, summary, work_experiences, skills)
