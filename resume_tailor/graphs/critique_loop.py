"""
Generic bounded critique loop.

State machine: DRAFT -> REVIEW -> {DONE | REVISE -> REVIEW}

- REVIEW: the reviewer returns a ReviewVerdict for the current draft.
- DONE on Approved.
- REVISE on Critique: the reviewer's corrected payload replaces the draft
  (when the graph accepts corrections), otherwise the reviser redrafts
  using the critique feedback. Each replacement counts as one iteration.
- The loop also ends when the iteration budget is spent or when a critique
  brings no distinguishable new draft. The last draft is returned in every
  case; non-approval is reported, never raised.

JSON-contract stages use run_contract_attempts instead: a bounded tenacity
retry on ContractError, after which the owning graph applies its fallback.
"""

from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, TypeVar

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from resume_tailor.common.agent import Critique, ReviewVerdict
from resume_tailor.common.errors import ContractError
from resume_tailor.common.logger import PipelineLogger, get_logger

T = TypeVar("T")

Reviewer = Callable[[str], Awaitable[ReviewVerdict]]
Reviser = Callable[[str, Critique], Awaitable[str]]


@dataclass
class CritiqueLoopOutcome:
    """Result of a critique loop run."""

    draft: str
    approved: bool
    iterations: int  # revise cycles actually applied
    verdicts: List[ReviewVerdict] = field(default_factory=list)


def _normalize(text: str) -> str:
    return " ".join((text or "").split())


async def run_critique_loop(
    draft: str,
    review: Reviewer,
    max_iterations: int,
    revise: Optional[Reviser] = None,
    accept_corrections: bool = True,
    logger: Optional[PipelineLogger] = None,
) -> CritiqueLoopOutcome:
    """
    Run the review/revise cycle on an initial draft.

    Args:
        draft: First draft produced by the writer
        review: Async callable returning a verdict for a draft
        max_iterations: Maximum number of revise cycles
        revise: Async callable producing a new draft from (draft, critique)
        accept_corrections: Adopt the reviewer's corrected payload when given
        logger: Logger bound to the calling graph

    Returns:
        CritiqueLoopOutcome with the last draft
    """
    log = logger or get_logger(__name__)
    verdicts: List[ReviewVerdict] = []
    iterations = 0

    while True:
        verdict = await review(draft)
        verdicts.append(verdict)

        if verdict.approved:
            log.debug(f"Draft approved after {iterations} revision(s)")
            return CritiqueLoopOutcome(draft=draft, approved=True, iterations=iterations, verdicts=verdicts)

        log.debug(f"Critique (iteration {iterations}): {verdict.reason[:120]}")
        if iterations >= max_iterations:
            log.info(f"Iteration budget ({max_iterations}) spent without approval, keeping last draft")
            break

        new_draft: Optional[str] = None
        if accept_corrections and verdict.corrected_payload:
            new_draft = verdict.corrected_payload
        elif revise is not None and verdict.feedback.strip():
            new_draft = await revise(draft, verdict)

        if not new_draft or not new_draft.strip() or _normalize(new_draft) == _normalize(draft):
            log.info("Critique brought no new draft, keeping current draft")
            break

        draft = new_draft
        iterations += 1

    return CritiqueLoopOutcome(draft=draft, approved=False, iterations=iterations, verdicts=verdicts)


async def run_contract_attempts(
    attempt: Callable[[int], Awaitable[T]],
    max_attempts: int,
) -> T:
    """
    Run a JSON-contract stage until it produces a valid result.

    The attempt callable receives the 1-based attempt number and raises
    ContractError when its output is unusable. Only ContractError is
    retried; TransportError and cancellation propagate immediately.

    Raises:
        ContractError: The last contract failure once attempts are spent
    """
    async for retrying in AsyncRetrying(
        stop=stop_after_attempt(max(1, max_attempts)),
        retry=retry_if_exception_type(ContractError),
        reraise=True,
    ):
        with retrying:
            return await attempt(retrying.retry_state.attempt_number)
    raise ContractError("no contract attempt was made")
