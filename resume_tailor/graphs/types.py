"""
Type definitions for the tailoring graphs and pipeline.

Resume inputs:
- Skill, SkillGroup, WorkExperience, ResumeData

Graph results:
- KeywordExtractionResult, EnrichmentMap
- ExperienceTailoringResult
- SkillsSortResult, AchievementsSortResult

Pipeline:
- PipelineProgress, PipelineResult

Dictionaries exchanged with the document layer use camelCase keys.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

from resume_tailor.common.errors import ContractFailure


# ===== RESUME INPUT TYPES =====

@dataclass
class Skill:
    """A single skill inside a skill group."""

    text: str
    highlight: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "highlight": self.highlight}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Skill":
        return cls(text=str(data.get("text", "")), highlight=bool(data.get("highlight", False)))


@dataclass
class SkillGroup:
    """A titled group of skills (e.g. "Languages")."""

    title: str
    skills: List[Skill] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "skills": [s.to_dict() for s in self.skills]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkillGroup":
        return cls(
            title=str(data.get("title", "")),
            skills=[Skill.from_dict(s) for s in data.get("skills") or []],
        )


@dataclass
class WorkExperience:
    """One work-experience entry of the resume."""

    organization: str
    position: str
    description: str = ""
    key_achievements: List[str] = field(default_factory=list)
    start_year: Optional[str] = None
    end_year: Optional[str] = None
    url: str = ""
    technologies: Optional[List[str]] = None  # None = entry has no tech stack

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "organization": self.organization,
            "url": self.url,
            "position": self.position,
            "description": self.description,
            "keyAchievements": [{"text": a} for a in self.key_achievements],
            "startYear": self.start_year,
            "endYear": self.end_year,
        }
        if self.technologies is not None:
            data["technologies"] = list(self.technologies)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WorkExperience":
        achievements = []
        for item in data.get("keyAchievements") or []:
            text = item.get("text", "") if isinstance(item, dict) else str(item)
            achievements.append(text)

        technologies = data.get("technologies")
        return cls(
            organization=str(data.get("organization", "")),
            position=str(data.get("position", "")),
            description=str(data.get("description", "")),
            key_achievements=achievements,
            start_year=_year(data.get("startYear")),
            end_year=_year(data.get("endYear")),
            url=str(data.get("url", "")),
            technologies=[str(t) for t in technologies] if technologies is not None else None,
        )


@dataclass
class ResumeData:
    """The subset of the resume document the pipeline reads and rewrites."""

    name: str
    summary: str = ""
    position: str = ""
    work_experience: List[WorkExperience] = field(default_factory=list)
    skills: List[SkillGroup] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "position": self.position,
            "summary": self.summary,
            "workExperience": [w.to_dict() for w in self.work_experience],
            "skills": [g.to_dict() for g in self.skills],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ResumeData":
        return cls(
            name=str(data.get("name", "")),
            summary=str(data.get("summary", "")),
            position=str(data.get("position", "")),
            work_experience=[WorkExperience.from_dict(w) for w in data.get("workExperience") or []],
            skills=[SkillGroup.from_dict(g) for g in data.get("skills") or []],
        )

    def all_skill_texts(self) -> List[str]:
        """Flatten every skill text across groups."""
        return [skill.text for group in self.skills for skill in group.skills]


def _year(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


# ===== GRAPH RESULT TYPES =====

# Achievement index (as string key) -> keywords approved for injection
EnrichmentMap = Dict[str, List[str]]


@dataclass
class KeywordExtractionResult:
    """JD keywords absent verbatim from a set of achievement bullets."""

    missing_keywords: List[str] = field(default_factory=list)
    critical_keywords: List[str] = field(default_factory=list)  # required / repeated in JD
    nice_to_have_keywords: List[str] = field(default_factory=list)  # preferred / mentioned once

    def candidates(self) -> List[str]:
        """
        Candidate keywords for enrichment, in priority order.

        Critical first, then nice-to-have, then any remaining missing
        keywords. Deduplicated case-insensitively.
        """
        seen = set()
        ordered = []
        for keyword in self.critical_keywords + self.nice_to_have_keywords + self.missing_keywords:
            key = keyword.strip().lower()
            if key and key not in seen:
                seen.add(key)
                ordered.append(keyword.strip())
        return ordered

    def to_dict(self) -> Dict[str, Any]:
        return {
            "missingKeywords": self.missing_keywords,
            "criticalKeywords": self.critical_keywords,
            "niceToHaveKeywords": self.nice_to_have_keywords,
        }


@dataclass
class ExperienceTailoringResult:
    """Tailored content for one work-experience entry."""

    description: str
    achievements: List[str]
    tech_stack: Optional[List[str]] = None

    # Diagnostics from the enrichment stages
    keywords: KeywordExtractionResult = field(default_factory=KeywordExtractionResult)
    enrichment_map: EnrichmentMap = field(default_factory=dict)
    reverted_indices: List[int] = field(default_factory=list)  # bullets restored to original

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "description": self.description,
            "achievements": self.achievements,
        }
        if self.tech_stack is not None:
            data["techStack"] = self.tech_stack
        return data


@dataclass
class SkillsSortResult:
    """Display order of skill groups and of skills within each group."""

    group_order: List[str]
    skill_order: Dict[str, List[str]]

    def to_dict(self) -> Dict[str, Any]:
        return {"groupOrder": self.group_order, "skillOrder": self.skill_order}


@dataclass
class AchievementsSortResult:
    """Ranking of achievement indices, most relevant first."""

    ranked_indices: List[int]

    def apply(self, achievements: List[str]) -> List[str]:
        return [achievements[i] for i in self.ranked_indices]


# ===== PIPELINE TYPES =====

@dataclass
class PipelineProgress:
    """
    Progress update emitted by the orchestrator.

    Always carries every artifact computed so far in the run.
    """

    current_step: int
    total_steps: int
    message: str
    done: bool = False
    refined_jd: Optional[str] = None
    job_title: Optional[str] = None
    summary: Optional[str] = None
    work_experiences: Optional[List[WorkExperience]] = None
    skills: Optional[List[SkillGroup]] = None
    cover_letter: Optional[str] = None

    def with_message(self, message: str, **changes: Any) -> "PipelineProgress":
        return replace(self, message=message, **changes)


ProgressCallback = Callable[[PipelineProgress], None]


@dataclass
class PipelineResult:
    """Final aggregate of a pipeline run."""

    refined_jd: str
    job_title: str
    summary: str
    work_experiences: List[WorkExperience]
    skills: List[SkillGroup]
    cover_letter: str
    diagnostics: List[ContractFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "refinedJD": self.refined_jd,
            "jobTitle": self.job_title,
            "summary": self.summary,
            "workExperiences": [w.to_dict() for w in self.work_experiences],
            "skills": [g.to_dict() for g in self.skills],
            "coverLetter": self.cover_letter,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
