"""
Unit tests for resume_tailor/graphs/orchestrator.py

Tests the sequential pipeline:
- Step counting (6 + number of work-experience entries)
- Progress event ordering, artifact carry-over, and the single done event
- Abort on TransportError and on cancellation
- Result assembly (merged experiences, sorted and highlighted skills)
"""

import pytest

from resume_tailor.common.cancellation import CancellationToken
from resume_tailor.common.config import AgentConfig
from resume_tailor.common.errors import PipelineCancelled, TransportError
from resume_tailor.graphs.orchestrator import (
    TailoringPipeline,
    highlight_skills,
    merge_tailored_experience,
    run_tailoring_pipeline,
)
from resume_tailor.graphs.prompts import experience_prompts, jd_prompts, job_title_prompts, skills_prompts
from resume_tailor.graphs.types import ExperienceTailoringResult, Skill, SkillGroup


@pytest.fixture
def routes(refined_jd):
    """Script that lets every graph finish with meaningful output."""
    return {
        jd_prompts.REFINER_SYSTEM_PROMPT: refined_jd,
        job_title_prompts.WRITER_SYSTEM_PROMPT: "Senior Backend Engineer",
        experience_prompts.TECH_STACK_ALIGNER_SYSTEM_PROMPT: '{"techStack": ["Go", "PostgreSQL", "Docker"]}',
        experience_prompts.TECH_STACK_SORTER_SYSTEM_PROMPT: '["Go", "Docker", "PostgreSQL"]',
        skills_prompts.VERIFIER_SYSTEM_PROMPT: "Go, PostgreSQL, Kubernetes",
    }


async def run_pipeline(adapter, resume, jd, cancel_token=None):
    events = []
    result = await TailoringPipeline(adapter=adapter).run(
        resume, jd, on_progress=events.append, cancel_token=cancel_token
    )
    return result, events


# ===== TESTS: Progress =====

class TestProgressEvents:
    """Tests for progress reporting."""

    @pytest.mark.asyncio
    async def test_total_steps_and_boundaries(self, make_adapter, routes, sample_resume, sample_jd):
        """Should run 6 + 3 steps, visiting each step number in order."""
        _, events = await run_pipeline(make_adapter(routes), sample_resume, sample_jd)

        assert {e.total_steps for e in events} == {9}
        steps = [e.current_step for e in events]
        assert steps == sorted(steps)
        assert sorted(set(steps)) == list(range(1, 10))

    @pytest.mark.asyncio
    async def test_done_only_on_final_event(self, make_adapter, routes, sample_resume, sample_jd):
        """Should set done=True on exactly one event: the last one."""
        _, events = await run_pipeline(make_adapter(routes), sample_resume, sample_jd)

        assert [e.done for e in events].count(True) == 1
        assert events[-1].done
        assert events[-1].message == "Tailoring complete"
        assert events[-1].current_step == 9

    @pytest.mark.asyncio
    async def test_graph_messages_relayed(self, make_adapter, routes, sample_resume, sample_jd):
        """Should relay graph status messages and never empty ones."""
        _, events = await run_pipeline(make_adapter(routes), sample_resume, sample_jd)

        messages = [e.message for e in events]
        assert "Refining job description..." in messages
        assert "Analyzing job description..." in messages
        assert all(messages)

    @pytest.mark.asyncio
    async def test_events_carry_artifacts(self, make_adapter, routes, refined_jd, sample_resume, sample_jd):
        """Should carry every artifact computed so far on later events."""
        _, events = await run_pipeline(make_adapter(routes), sample_resume, sample_jd)

        first_title_step = next(e for e in events if e.current_step == 2)
        assert first_title_step.refined_jd == refined_jd
        assert first_title_step.job_title is None

        first_skills_step = next(e for e in events if e.current_step == 7)
        assert first_skills_step.job_title == "Senior Backend Engineer"
        assert len(first_skills_step.work_experiences) == 3
        assert events[-1].cover_letter is not None

    @pytest.mark.asyncio
    async def test_no_work_experience(self, make_adapter, routes, sample_jd):
        """Should run the 6 fixed steps and return no experiences."""
        resume = {
            "name": "Sam Roe",
            "position": "Engineer",
            "summary": "Engineer.",
            "skills": [{"title": "Languages", "skills": [{"text": "Go"}]}],
        }

        result, events = await run_pipeline(make_adapter(routes), resume, sample_jd)

        assert result.work_experiences == []
        assert events[-1].total_steps == 6
        assert events[-1].current_step == 6


# ===== TESTS: Abort =====

class TestAbort:
    """Tests for TransportError and cancellation."""

    @pytest.mark.asyncio
    async def test_transport_error_aborts_run(self, make_adapter, routes, sample_resume, sample_jd):
        """Should propagate TransportError and never emit a done event."""
        routes[job_title_prompts.ANALYST_SYSTEM_PROMPT] = TransportError("429 quota exceeded", provider="gemini")
        adapter = make_adapter(routes)
        events = []

        with pytest.raises(TransportError, match="quota"):
            await TailoringPipeline(adapter=adapter).run(sample_resume, sample_jd, on_progress=events.append)

        assert not any(e.done for e in events)
        assert max(e.current_step for e in events) == 2
        assert adapter.calls_for(job_title_prompts.WRITER_SYSTEM_PROMPT) == []

    @pytest.mark.asyncio
    async def test_cancellation_stops_run(self, make_adapter, routes, sample_resume, sample_jd):
        """Should stop at the next agent call once the token fires."""
        token = CancellationToken()
        adapter = make_adapter(routes)
        events = []

        def on_progress(progress):
            events.append(progress)
            if progress.current_step == 3:
                token.cancel("user closed the dialog")

        with pytest.raises(PipelineCancelled, match="user closed the dialog"):
            await TailoringPipeline(adapter=adapter).run(
                sample_resume, sample_jd, on_progress=on_progress, cancel_token=token
            )

        assert not any(e.done for e in events)
        assert max(e.current_step for e in events) == 3

    def test_requires_config_or_adapter(self):
        """Should refuse to build a pipeline without a provider."""
        with pytest.raises(ValueError):
            TailoringPipeline()


# ===== TESTS: Result =====

class TestResult:
    """Tests for result assembly."""

    @pytest.mark.asyncio
    async def test_merges_experiences(self, make_adapter, routes, sample_resume, sample_jd):
        """Should overwrite technologies only for entries that have them."""
        result, _ = await run_pipeline(make_adapter(routes), sample_resume, sample_jd)

        assert [w.organization for w in result.work_experiences] == ["Globex", "Initech", "Hooli"]
        assert result.work_experiences[0].technologies == ["Go", "Docker", "PostgreSQL"]
        assert result.work_experiences[1].technologies is None
        assert result.job_title == "Senior Backend Engineer"

    @pytest.mark.asyncio
    async def test_highlights_extracted_skills(self, make_adapter, routes, sample_resume, sample_jd):
        """Should highlight skills matching extracted keywords and keep existing highlights."""
        result, _ = await run_pipeline(make_adapter(routes), sample_resume, sample_jd)

        flags = {s.text: s.highlight for g in result.skills for s in g.skills}
        assert flags == {"Python": False, "Go": True, "PostgreSQL": True, "Redis": False}

    @pytest.mark.asyncio
    async def test_result_to_dict(self, make_adapter, routes, sample_resume, sample_jd):
        """Should serialize with camelCase keys."""
        result, _ = await run_pipeline(make_adapter(routes), sample_resume, sample_jd)

        data = result.to_dict()
        assert data["jobTitle"] == "Senior Backend Engineer"
        assert data["workExperiences"][0]["technologies"] == ["Go", "Docker", "PostgreSQL"]
        assert "technologies" not in data["workExperiences"][1]

    @pytest.mark.asyncio
    async def test_convenience_function_builds_adapter_once(self, mocker, make_adapter, routes, sample_resume, sample_jd):
        """Should create the adapter from the config exactly once."""
        adapter = make_adapter(routes)
        config = AgentConfig(api_url="http://localhost:1234/v1", api_key="", model="local")
        factory = mocker.patch("resume_tailor.graphs.orchestrator.create_model_adapter", return_value=adapter)

        result = await run_tailoring_pipeline(sample_resume, sample_jd, config)

        factory.assert_called_once_with(config)
        assert result.job_title == "Senior Backend Engineer"


class TestMergeHelpers:
    """Tests for the pure merge helpers."""

    def test_merge_keeps_missing_tech_stack(self, sample_resume):
        """Should not invent a tech stack for an entry without one."""
        entry = sample_resume.work_experience[1]
        tailored = ExperienceTailoringResult(
            description="Built reporting services.", achievements=["Migrated 12 cron jobs"], tech_stack=["Go"]
        )
        merged = merge_tailored_experience(entry, tailored)
        assert merged.technologies is None
        assert merged.key_achievements == ["Migrated 12 cron jobs"]
        assert entry.key_achievements == ["Migrated 12 cron jobs to a queue-based scheduler"]

    def test_highlight_is_case_insensitive(self):
        """Should match keywords regardless of case."""
        groups = highlight_skills([SkillGroup("Data", [Skill("PostgreSQL")])], ["postgresql"])
        assert groups[0].skills[0].highlight
