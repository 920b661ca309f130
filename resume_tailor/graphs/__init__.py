"""
Task Graphs and the Pipeline Orchestrator.

Each graph is a bounded multi-agent workflow producing one validated artifact:

1. JD Refinement - four-section job description brief
2. Job Title - headline title, reviewer-corrected
3. Summary - 4-sentence summary restricted to the candidate's skills
4. Experience Tailoring - description and achievements per entry, with
   keyword enrichment gated by an integrity audit
5. Skills Sorting - group and skill order (always a bijection)
6. Skills Extraction - key JD skills
7. Cover Letter - fact-checked letter

TailoringPipeline runs them in that order and reports progress.
"""

from resume_tailor.graphs.types import (
    Skill,
    SkillGroup,
    WorkExperience,
    ResumeData,
    # Graph results
    EnrichmentMap,
    KeywordExtractionResult,
    ExperienceTailoringResult,
    SkillsSortResult,
    AchievementsSortResult,
    # Pipeline
    PipelineProgress,
    PipelineResult,
)
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.critique_loop import CritiqueLoopOutcome, run_critique_loop
from resume_tailor.graphs.jd_refinement import JDRefinementGraph, refine_job_description
from resume_tailor.graphs.job_title import JobTitleGraph, generate_job_title
from resume_tailor.graphs.summary import SummaryGraph, generate_summary
from resume_tailor.graphs.experience_tailoring import ExperienceTailoringGraph, tailor_experience
from resume_tailor.graphs.achievements_sorting import AchievementsSortingGraph
from resume_tailor.graphs.tech_stack import TechStackGraph
from resume_tailor.graphs.skills_sorting import SkillsSortingGraph, sort_skills
from resume_tailor.graphs.skills_extraction import SkillsExtractionGraph, extract_skills
from resume_tailor.graphs.cover_letter import CoverLetterGraph, generate_cover_letter
from resume_tailor.graphs.orchestrator import TailoringPipeline, run_tailoring_pipeline

__all__ = [
    # Resume types
    "Skill",
    "SkillGroup",
    "WorkExperience",
    "ResumeData",
    # Graph results
    "EnrichmentMap",
    "KeywordExtractionResult",
    "ExperienceTailoringResult",
    "SkillsSortResult",
    "AchievementsSortResult",
    # Pipeline types
    "PipelineProgress",
    "PipelineResult",
    # Building blocks
    "GraphContext",
    "CritiqueLoopOutcome",
    "run_critique_loop",
    # Graphs
    "JDRefinementGraph",
    "refine_job_description",
    "JobTitleGraph",
    "generate_job_title",
    "SummaryGraph",
    "generate_summary",
    "ExperienceTailoringGraph",
    "tailor_experience",
    "AchievementsSortingGraph",
    "TechStackGraph",
    "SkillsSortingGraph",
    "sort_skills",
    "SkillsExtractionGraph",
    "extract_skills",
    "CoverLetterGraph",
    "generate_cover_letter",
    # Orchestrator
    "TailoringPipeline",
    "run_tailoring_pipeline",
]
