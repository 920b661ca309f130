"""
Global fixtures for all unit tests.

Provides:
- Environment isolation (no real provider credentials or config overrides)
- ScriptedAdapter: a ModelAdapter that answers by system prompt, so graphs
  can be driven end-to-end without any network call
- Sample resume and job description data
"""

from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from resume_tailor.common.config import AgentConfig
from resume_tailor.common.model_adapters import ModelAdapter
from resume_tailor.common.types import Message, StreamEvent
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.types import ResumeData, Skill, SkillGroup, WorkExperience

Route = Union[str, List[str], Callable[[str], str], Exception]


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch):
    """
    Isolate tests from real credentials and configuration overrides.

    Prevents a developer's .env (or shell) from changing iteration bounds or
    pointing agents at a real provider.
    """
    import os

    for key in list(os.environ):
        if key.startswith(("RESUME_TAILOR_", "TAILOR_MAX_ITERATIONS_", "TAILOR_TEMPERATURE_")):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("RESUME_TAILOR_API_KEY", "sk-test-mock-key")


class ScriptedAdapter(ModelAdapter):
    """
    ModelAdapter answering from a script keyed by system prompt.

    A route may be a string (always returned), a list of strings (consumed
    in order, the last one repeats), a callable receiving the user context,
    or an exception instance to raise.
    """

    provider = "scripted"

    def __init__(self, routes: Optional[Dict[str, Route]] = None, default: str = "APPROVED"):
        super().__init__(AgentConfig(api_url="http://scripted.local/v1", api_key="", model="scripted-model"))
        self.routes: Dict[str, Route] = {
            key: list(value) if isinstance(value, list) else value
            for key, value in (routes or {}).items()
        }
        self.default = default
        self.calls: List[Tuple[str, str]] = []

    def _build_client(self, temperature):
        raise NotImplementedError("ScriptedAdapter never builds a provider client")

    def _respond(self, messages: List[Message]) -> str:
        system, user = messages[0].content, messages[-1].content
        self.calls.append((system, user))
        route = self.routes.get(system, self.default)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, list):
            return route.pop(0) if len(route) > 1 else route[0]
        if callable(route):
            return route(user)
        return route

    async def complete(self, messages, temperature=0.7):
        return self._respond(messages)

    async def stream(self, messages, temperature=0.7, on_event=None):
        text = self._respond(messages)
        if on_event:
            for word in text.split(" "):
                on_event(StreamEvent(content=word, done=False))
            on_event(StreamEvent(content=None, done=True))
        return text

    def calls_for(self, system_prompt: str) -> List[str]:
        """User contexts sent to the agent with this system prompt."""
        return [user for system, user in self.calls if system == system_prompt]


@pytest.fixture
def make_adapter():
    """Factory for ScriptedAdapter instances."""
    def _make(routes: Optional[Dict[str, Route]] = None, default: str = "APPROVED") -> ScriptedAdapter:
        return ScriptedAdapter(routes, default)
    return _make


@pytest.fixture
def make_context():
    """Factory for GraphContext instances that record emitted events."""
    def _make(adapter: ModelAdapter, cancel_token=None) -> Tuple[GraphContext, List[StreamEvent]]:
        events: List[StreamEvent] = []
        context = GraphContext(adapter=adapter, on_event=events.append, cancel_token=cancel_token, run_id="test-run-0001")
        return context, events
    return _make


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def sample_jd():
    """Raw job description text."""
    return (
        "Senior Backend Engineer at Acme Cloud. You will design gRPC services in Go, "
        "run them on Kubernetes, and own reliability for our payments platform. "
        "Required: Go, Kubernetes, gRPC, PostgreSQL. Preferred: Terraform."
    )


@pytest.fixture
def refined_jd():
    """A well-formed refined JD."""
    return (
        "# position-title\n"
        "Senior Backend Engineer\n\n"
        "# core-responsibilities\n"
        "- Design gRPC services in Go\n"
        "- Run services on Kubernetes\n\n"
        "# desired-qualifications\n"
        "- 5+ years of backend development\n\n"
        "# required-skills\n"
        "- Go\n- Kubernetes\n- gRPC\n- PostgreSQL"
    )


@pytest.fixture
def sample_resume():
    """Resume with three work-experience entries and two skill groups."""
    return ResumeData(
        name="Alex Doe",
        position="Software Engineer",
        summary="Backend engineer focused on APIs and data systems.",
        work_experience=[
            WorkExperience(
                organization="Globex",
                position="Backend Engineer",
                description="Built and operated public APIs for the commerce platform.",
                key_achievements=[
                    "Built REST API serving 1M requests/day",
                    "Reduced p99 latency by 40% through query tuning",
                ],
                start_year="2021",
                end_year="Present",
                technologies=["Go", "PostgreSQL", "Docker"],
            ),
            WorkExperience(
                organization="Initech",
                position="Software Engineer",
                description="Developed internal reporting services.",
                key_achievements=["Migrated 12 cron jobs to a queue-based scheduler"],
                start_year="2018",
                end_year="2021",
            ),
            WorkExperience(
                organization="Hooli",
                position="Junior Developer",
                description="Maintained billing scripts.",
                key_achievements=["Automated invoice exports for 300 customers"],
                start_year="2016",
                end_year="2018",
            ),
        ],
        skills=[
            SkillGroup(title="Languages", skills=[Skill("Python"), Skill("Go", highlight=True)]),
            SkillGroup(title="Data", skills=[Skill("PostgreSQL"), Skill("Redis")]),
        ],
    )
