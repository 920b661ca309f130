"""
Shared run context for task graphs.

A GraphContext bundles what every graph needs from its caller: the model
adapter chosen for the run, the progress callback, the cancellation token,
and the diagnostics collector. Agents are created fresh for each graph run.
"""

from dataclasses import dataclass, field
from typing import Optional

from resume_tailor.common.agent import Agent, ReviewVerdict
from resume_tailor.common.cancellation import CancellationToken
from resume_tailor.common.errors import DiagnosticsCollector
from resume_tailor.common.logger import PipelineLogger, get_logger
from resume_tailor.common.model_adapters import ModelAdapter
from resume_tailor.common.types import StreamCallback, StreamEvent


@dataclass
class GraphContext:
    """Per-run dependencies shared by every graph."""

    adapter: ModelAdapter
    on_event: Optional[StreamCallback] = None
    cancel_token: Optional[CancellationToken] = None
    diagnostics: DiagnosticsCollector = field(default_factory=DiagnosticsCollector)
    run_id: Optional[str] = None

    def logger(self, name: str, graph: str) -> PipelineLogger:
        return get_logger(name, run_id=self.run_id, graph=graph)

    def emit(self, message: str) -> None:
        """Emit a status message to the progress callback."""
        if self.on_event and message:
            self.on_event(StreamEvent(content=message, done=False))

    def agent(self, name: str, system_prompt: str, temperature: float) -> Agent:
        return Agent(name, system_prompt, self.adapter, temperature=temperature)

    async def call(self, agent: Agent, context: str) -> str:
        return await agent.invoke(context, cancel_token=self.cancel_token)

    async def review(self, agent: Agent, context: str) -> ReviewVerdict:
        return await agent.review(context, cancel_token=self.cancel_token)

    def check_cancelled(self) -> None:
        if self.cancel_token is not None:
            self.cancel_token.raise_if_cancelled()
