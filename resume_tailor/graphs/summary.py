"""
Professional Summary Graph.

Flow: Analyst (pillars + clusters) -> Writer (4 sentences) ->
      [skill check + Reviewer -> Writer rewrite]* (max 2 revisions)

The reviewer's APPROVED is honoured only when the deterministic skill check
finds no violations and the summary has exactly four sentences.
"""

import json
import re
from datetime import datetime
from typing import List, Optional

from resume_tailor.common.agent import Critique, ReviewVerdict
from resume_tailor.common.config import Settings
from resume_tailor.common.graph_config import GraphConfig, get_graph_config
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.critique_loop import run_critique_loop
from resume_tailor.graphs.prompts.summary_prompts import (
    ANALYST_SYSTEM_PROMPT,
    REVIEWER_SYSTEM_PROMPT,
    WRITER_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_review_prompt,
    build_rewrite_prompt,
    build_writer_prompt,
)
from resume_tailor.graphs.types import ResumeData, WorkExperience
from resume_tailor.graphs.validators import split_sentences, validate_skills_in_summary

GRAPH_NAME = "summary"
REQUIRED_SENTENCES = 4


def years_of_experience(work_experience: List[WorkExperience], current_year: Optional[int] = None) -> str:
    """
    Render years of experience from the oldest entry.

    Entries are listed most recent first, so the last entry's start year
    marks the start of the career.
    """
    if not work_experience:
        return "extensive experience"

    match = re.search(r"\d{4}", work_experience[-1].start_year or "")
    if not match:
        return "extensive experience"

    years = (current_year or datetime.now().year) - int(match.group(0))
    if years <= 0:
        return "extensive experience"
    return f"{years}+ years"


def clean_summary(text: str) -> str:
    """Strip wrapping quotes and collapse whitespace."""
    result = " ".join((text or "").split())
    return result.strip().strip("\"'“”").strip()


def _work_history_json(work_experience: List[WorkExperience]) -> str:
    history = [
        {
            "position": entry.position,
            "organization": entry.organization,
            "description": entry.description,
            "achievements": entry.key_achievements,
            "technologies": entry.technologies or [],
        }
        for entry in work_experience
    ]
    return json.dumps(history, indent=2)


class SummaryGraph:
    """Write a 4-sentence professional summary grounded in the candidate's skills."""

    def __init__(self, context: GraphContext, config: Optional[GraphConfig] = None, current_year: Optional[int] = None):
        self.context = context
        self.config = config or get_graph_config(GRAPH_NAME)
        self.current_year = current_year
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(self, refined_jd: str, resume: ResumeData) -> str:
        ctx = self.context
        allowed_skills = resume.all_skill_texts()
        years = years_of_experience(resume.work_experience, self.current_year)

        analyst = ctx.agent("summary_analyst", ANALYST_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        writer = ctx.agent("summary_writer", WRITER_SYSTEM_PROMPT, self.config.temperature)
        reviewer = ctx.agent("summary_reviewer", REVIEWER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        ctx.emit("Analyzing career pillars...")
        analysis = await ctx.call(
            analyst,
            build_analysis_prompt(refined_jd, _work_history_json(resume.work_experience), allowed_skills),
        )

        ctx.emit("Writing summary...")
        writer_prompt = build_writer_prompt(analysis, years, allowed_skills, refined_jd)
        draft = clean_summary(await ctx.call(writer, writer_prompt))

        async def review(current: str) -> ReviewVerdict:
            ctx.emit("Auditing summary...")
            skills = validate_skills_in_summary(current, allowed_skills)
            sentence_count = len(split_sentences(current))
            skill_report = (
                "no violations" if skills.valid
                else f"{len(skills.violations)} violation(s): {', '.join(skills.violations)}"
            )
            verdict = await ctx.review(
                reviewer, build_review_prompt(current, sentence_count, skill_report, allowed_skills)
            )

            problems = []
            if not skills.valid:
                problems.append(f"Remove skills not in the candidate's list: {', '.join(skills.violations)}")
            if sentence_count != REQUIRED_SENTENCES:
                problems.append(f"Use exactly {REQUIRED_SENTENCES} sentences (found {sentence_count})")

            if verdict.approved and problems:
                return Critique(reason=problems[0], details="\n".join(problems))
            if isinstance(verdict, Critique) and problems:
                return Critique(reason=verdict.reason, details="\n".join([verdict.feedback] + problems))
            return verdict

        async def revise(current: str, critique: Critique) -> str:
            ctx.emit("Rewriting summary...")
            return clean_summary(await ctx.call(writer, build_rewrite_prompt(writer_prompt, current, critique.feedback)))

        outcome = await run_critique_loop(
            draft,
            review,
            max_iterations=self.config.max_iterations,
            revise=revise,
            accept_corrections=False,
            logger=self._logger,
        )
        self._logger.info(f"Summary written (approved={outcome.approved}, revisions={outcome.iterations})")
        return outcome.draft or resume.summary


async def generate_summary(refined_jd: str, resume: ResumeData, context: GraphContext) -> str:
    """Convenience function to run the summary graph."""
    return await SummaryGraph(context).run(refined_jd, resume)
