"""
Pydantic models for JSON-contract stages.

Each model mirrors the exact JSON shape its agent is prompted to produce.
Validation failures are turned into ContractError at the call site.
"""

from typing import Dict, List

from pydantic import BaseModel, ConfigDict, Field


class SkillsSortPayload(BaseModel):
    """Scribe output for skills sorting."""

    model_config = ConfigDict(populate_by_name=True)

    group_order: List[str] = Field(alias="groupOrder", description="Group titles, most relevant first")
    skill_order: Dict[str, List[str]] = Field(alias="skillOrder", description="Skill texts per group")


class KeywordExtractionPayload(BaseModel):
    """Keyword Extractor output."""

    model_config = ConfigDict(populate_by_name=True)

    missing_keywords: List[str] = Field(alias="missingKeywords")
    critical_keywords: List[str] = Field(default_factory=list, alias="criticalKeywords")
    nice_to_have_keywords: List[str] = Field(default_factory=list, alias="niceToHaveKeywords")


class EnrichmentPayload(BaseModel):
    """Enrichment Classifier output."""

    model_config = ConfigDict(populate_by_name=True)

    enrichment_map: Dict[str, List[str]] = Field(alias="enrichmentMap")
    rationale: str = ""


class AchievementRankingPayload(BaseModel):
    """Achievements Sorter output."""

    model_config = ConfigDict(populate_by_name=True)

    ranked_indices: List[int] = Field(alias="rankedIndices")


class TechStackAlignmentPayload(BaseModel):
    """Tech Stack Aligner output."""

    model_config = ConfigDict(populate_by_name=True)

    tech_stack: List[str] = Field(alias="techStack")
    rationale: str = ""
