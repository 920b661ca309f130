"""
Error taxonomy and diagnostics for the tailoring pipeline.

Only TransportError (and PipelineCancelled, when the caller asks for it)
ever escapes a pipeline run. ContractError is raised at JSON-contract seams
and always recovered locally by the owning graph, which records it in a
DiagnosticsCollector so the caller can inspect what degraded.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class TailoringError(Exception):
    """Base class for all tailoring pipeline errors."""


class TransportError(TailoringError):
    """
    Provider call failed: network, timeout, auth, quota, or malformed envelope.

    Fatal for the whole pipeline run. The original provider exception is
    chained as __cause__.
    """

    def __init__(self, message: str, provider: Optional[str] = None, model: Optional[str] = None):
        super().__init__(message)
        self.provider = provider
        self.model = model


class ContractError(TailoringError):
    """A JSON-contract stage returned unparsable or structurally invalid output."""

    def __init__(self, message: str, stage: str = "", raw_output: Optional[str] = None):
        super().__init__(message)
        self.stage = stage
        self.raw_output = raw_output


class PipelineCancelled(TailoringError):
    """The run was cancelled through its CancellationToken."""


@dataclass
class ContractFailure:
    """
    A recovered contract failure.

    Recorded whenever a graph falls back to its neutral value.
    """

    graph: str  # e.g., "skills_sorting", "experience_tailoring"
    stage: str  # e.g., "scribe", "keyword_extractor"
    message: str
    fallback: str = ""  # e.g., "identity", "empty"
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "graph": self.graph,
            "stage": self.stage,
            "message": self.message,
            "fallback": self.fallback,
            "timestamp": self.timestamp,
        }


class DiagnosticsCollector:
    """
    Collects recovered contract failures during a pipeline run.

    One collector is created per run and shared by every graph.
    """

    def __init__(self):
        self.failures: List[ContractFailure] = []

    def record(
        self,
        graph: str,
        stage: str,
        error: Exception,
        fallback: str = "",
    ) -> ContractFailure:
        """Record a contract failure and return it."""
        failure = ContractFailure(
            graph=graph,
            stage=stage,
            message=str(error),
            fallback=fallback,
        )
        self.failures.append(failure)
        return failure

    def has_failures(self) -> bool:
        return bool(self.failures)

    def for_graph(self, graph: str) -> List[ContractFailure]:
        """Get failures recorded by one graph."""
        return [f for f in self.failures if f.graph == graph]

    def summary(self) -> str:
        """Get a human-readable summary of recorded failures."""
        if not self.failures:
            return "No contract failures"

        by_graph: Dict[str, int] = {}
        for failure in self.failures:
            by_graph[failure.graph] = by_graph.get(failure.graph, 0) + 1

        parts = [f"{graph}: {count}" for graph, count in sorted(by_graph.items())]
        return f"{len(self.failures)} contract failure(s) recovered ({', '.join(parts)})"

    def to_dict(self) -> List[Dict[str, Any]]:
        return [f.to_dict() for f in self.failures]
