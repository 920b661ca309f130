"""
Tailoring Pipeline Orchestrator.

Runs the task graphs in a fixed, strictly sequential order:

    1. JD Refinement
    2. Job Title
    3. Summary
    4. Experience Tailoring (once per work-experience entry)
    5. Skills Sorting
    6. Skills Extraction
    7. Cover Letter

total_steps = 6 + number of work-experience entries.

Progress: one boundary event per step plus every non-empty status message a
graph emits, each carrying all artifacts computed so far. done=True is only
set on the final event. The orchestrator never retries; a TransportError
aborts the run and partial artifacts are discarded.

Usage:
    pipeline = TailoringPipeline(AgentConfig.from_env())
    result = await pipeline.run(resume, job_description, on_progress=print)
"""

import uuid
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Union

from resume_tailor.common.cancellation import CancellationToken
from resume_tailor.common.config import AgentConfig
from resume_tailor.common.errors import DiagnosticsCollector, PipelineCancelled, TransportError
from resume_tailor.common.logger import get_logger
from resume_tailor.common.model_adapters import ModelAdapter, create_model_adapter
from resume_tailor.common.types import StreamEvent
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.cover_letter import CoverLetterGraph
from resume_tailor.graphs.experience_tailoring import ExperienceTailoringGraph
from resume_tailor.graphs.job_title import JobTitleGraph
from resume_tailor.graphs.jd_refinement import JDRefinementGraph
from resume_tailor.graphs.skills_extraction import SkillsExtractionGraph
from resume_tailor.graphs.skills_sorting import SkillsSortingGraph, apply_skills_sort
from resume_tailor.graphs.summary import SummaryGraph
from resume_tailor.graphs.types import (
    ExperienceTailoringResult,
    PipelineProgress,
    PipelineResult,
    ProgressCallback,
    ResumeData,
    Skill,
    SkillGroup,
    WorkExperience,
)

FIXED_STEPS = 6


def merge_tailored_experience(entry: WorkExperience, tailored: ExperienceTailoringResult) -> WorkExperience:
    """Overwrite an entry's description, achievements, and (if present) technologies."""
    technologies = entry.technologies
    if entry.technologies is not None and tailored.tech_stack is not None:
        technologies = list(tailored.tech_stack)
    return replace(
        entry,
        description=tailored.description,
        key_achievements=list(tailored.achievements),
        technologies=technologies,
    )


def highlight_skills(groups: Sequence[SkillGroup], keywords: Sequence[str]) -> List[SkillGroup]:
    """Mark skills that match an extracted JD keyword; existing highlights are kept."""
    wanted = {k.strip().lower() for k in keywords if k and k.strip()}
    return [
        SkillGroup(
            title=group.title,
            skills=[
                Skill(text=skill.text, highlight=skill.highlight or skill.text.strip().lower() in wanted)
                for skill in group.skills
            ],
        )
        for group in groups
    ]


class TailoringPipeline:
    """
    End-to-end resume tailoring pipeline.

    The model adapter is created once per pipeline from the AgentConfig
    (or injected directly) and shared by every agent of every graph.
    """

    def __init__(
        self,
        config: Optional[AgentConfig] = None,
        adapter: Optional[ModelAdapter] = None,
    ):
        if adapter is None:
            if config is None:
                raise ValueError("TailoringPipeline needs an AgentConfig or a ModelAdapter")
            adapter = create_model_adapter(config)
        self.adapter = adapter
        self._logger = get_logger(__name__)

    async def run(
        self,
        resume: Union[ResumeData, Dict[str, Any]],
        job_description: str,
        on_progress: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PipelineResult:
        """
        Run every graph in order and assemble the result.

        Raises:
            TransportError: If any provider call fails (aborts the run)
            PipelineCancelled: If cancel_token fires
        """
        if isinstance(resume, dict):
            resume = ResumeData.from_dict(resume)

        run_id = uuid.uuid4().hex
        logger = self._logger.bind(run_id=run_id, graph="pipeline")
        experiences = list(resume.work_experience or [])
        total_steps = FIXED_STEPS + len(experiences)

        state = PipelineProgress(current_step=0, total_steps=total_steps, message="")

        def publish(progress: PipelineProgress) -> None:
            if on_progress:
                on_progress(progress)

        def relay(event: StreamEvent) -> None:
            # Graph-internal events: drop stream terminators and empty chunks
            if event.done or not event.content:
                return
            publish(state.with_message(event.content))

        def start_step(message: str) -> None:
            nonlocal state
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()
            state = replace(state, current_step=state.current_step + 1, message=message)
            logger.info("=" * 60)
            logger.info(f"Step {state.current_step}/{total_steps}: {message}")
            publish(state)

        context = GraphContext(
            adapter=self.adapter,
            on_event=relay,
            cancel_token=cancel_token,
            diagnostics=DiagnosticsCollector(),
            run_id=run_id,
        )

        logger.info(f"Starting tailoring pipeline for {resume.name or 'candidate'} ({total_steps} steps)")

        try:
            start_step("Refining job description...")
            refined_jd = await JDRefinementGraph(context).run(job_description)
            state = replace(state, refined_jd=refined_jd)

            start_step("Generating job title...")
            job_title = await JobTitleGraph(context).run(refined_jd, resume)
            state = replace(state, job_title=job_title)

            start_step("Writing professional summary...")
            summary = await SummaryGraph(context).run(refined_jd, resume)
            state = replace(state, summary=summary)

            tailored_experiences: List[WorkExperience] = []
            for index, entry in enumerate(experiences):
                start_step(
                    f"Tailoring experience {index + 1}/{len(experiences)}: "
                    f"{entry.position} at {entry.organization}"
                )
                tailored = await ExperienceTailoringGraph(context).run(entry, refined_jd)
                tailored_experiences.append(merge_tailored_experience(entry, tailored))
                state = replace(state, work_experiences=list(tailored_experiences))

            start_step("Sorting skills...")
            sort_result = await SkillsSortingGraph(context).run(refined_jd, resume.skills)
            skills = apply_skills_sort(resume.skills, sort_result)
            state = replace(state, skills=skills)

            start_step("Extracting key skills...")
            keywords = await SkillsExtractionGraph(context).run(refined_jd)
            skills = highlight_skills(skills, keywords)
            state = replace(state, skills=skills)

            start_step("Writing cover letter...")
            cover_letter = await CoverLetterGraph(context).run(
                refined_jd, job_title, resume.name, summary, tailored_experiences, skills
            )
            state = replace(state, cover_letter=cover_letter)
        except TransportError as e:
            logger.error(f"Pipeline aborted at step {state.current_step}/{total_steps}: {e}")
            raise
        except PipelineCancelled:
            logger.warning(f"Pipeline cancelled at step {state.current_step}/{total_steps}")
            raise

        publish(replace(state, message="Tailoring complete", done=True))

        diagnostics = context.diagnostics
        logger.info(f"Pipeline complete: {diagnostics.summary()}")

        return PipelineResult(
            refined_jd=refined_jd,
            job_title=job_title,
            summary=summary,
            work_experiences=tailored_experiences,
            skills=skills,
            cover_letter=cover_letter,
            diagnostics=list(diagnostics.failures),
        )


async def run_tailoring_pipeline(
    resume: Union[ResumeData, Dict[str, Any]],
    job_description: str,
    config: AgentConfig,
    on_progress: Optional[ProgressCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> PipelineResult:
    """Convenience function to run the full pipeline once."""
    return await TailoringPipeline(config).run(resume, job_description, on_progress, cancel_token)
