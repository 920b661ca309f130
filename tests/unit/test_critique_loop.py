"""
Unit tests for resume_tailor/graphs/critique_loop.py

Tests the bounded review/revise state machine:
- Always-approving reviewer: one draft, zero revisions
- Always-critiquing reviewer: stops at exactly max_iterations
- Non-cooperative reviewer: stops when no new draft is produced
- Bounded JSON-contract attempts (ContractError retried, TransportError not)
"""

import pytest

from resume_tailor.common.agent import Approved, Critique
from resume_tailor.common.errors import ContractError, TransportError
from resume_tailor.graphs.critique_loop import run_contract_attempts, run_critique_loop


class Counter:
    """Records how often a stub was called."""

    def __init__(self):
        self.calls = 0


# ===== TESTS: Termination =====

class TestCritiqueLoopTermination:
    """Tests that every loop terminates with the best available draft."""

    @pytest.mark.asyncio
    async def test_always_approved_means_no_revisions(self):
        """Should review once and never revise when the reviewer approves."""
        revisions = Counter()

        async def review(draft):
            return Approved()

        async def revise(draft, critique):
            revisions.calls += 1
            return draft + " v2"

        outcome = await run_critique_loop("draft", review, max_iterations=3, revise=revise)

        assert outcome.approved
        assert outcome.draft == "draft"
        assert outcome.iterations == 0
        assert revisions.calls == 0

    @pytest.mark.parametrize("max_iterations", [1, 2, 3])
    @pytest.mark.asyncio
    async def test_always_critique_stops_at_budget(self, max_iterations):
        """Should stop after exactly max_iterations revisions and keep the last draft."""
        revisions = Counter()
        reviews = Counter()

        async def review(draft):
            reviews.calls += 1
            return Critique(reason="still not good", details="still not good")

        async def revise(draft, critique):
            revisions.calls += 1
            return f"draft v{revisions.calls + 1}"

        outcome = await run_critique_loop("draft v1", review, max_iterations=max_iterations, revise=revise)

        assert not outcome.approved
        assert outcome.iterations == max_iterations
        assert revisions.calls == max_iterations
        assert reviews.calls == max_iterations + 1
        assert outcome.draft == f"draft v{max_iterations + 1}"

    @pytest.mark.asyncio
    async def test_corrected_payload_replaces_draft(self):
        """Should adopt the reviewer's correction, then stop when approved."""
        verdicts = [Critique(reason="too long", corrected_payload="Staff Engineer"), Approved()]

        async def review(draft):
            return verdicts.pop(0)

        outcome = await run_critique_loop("Staff Software Engineering Lead Person", review, max_iterations=3)

        assert outcome.approved
        assert outcome.draft == "Staff Engineer"
        assert outcome.iterations == 1

    @pytest.mark.asyncio
    async def test_same_correction_stops_loop(self):
        """Should stop when the correction equals the current draft."""
        reviews = Counter()

        async def review(draft):
            reviews.calls += 1
            return Critique(reason="meh", corrected_payload="  Staff   Engineer ")

        outcome = await run_critique_loop("Staff Engineer", review, max_iterations=3)

        assert reviews.calls == 1
        assert outcome.iterations == 0
        assert outcome.draft == "Staff Engineer"

    @pytest.mark.asyncio
    async def test_critique_without_correction_or_reviser_stops(self):
        """Should stop when nothing can produce a new draft."""
        async def review(draft):
            return Critique(reason="unclear")

        outcome = await run_critique_loop("draft", review, max_iterations=3)

        assert not outcome.approved
        assert outcome.iterations == 0
        assert len(outcome.verdicts) == 1

    @pytest.mark.asyncio
    async def test_empty_revision_keeps_previous_draft(self):
        """Should keep the last good draft when the reviser returns nothing."""
        async def review(draft):
            return Critique(reason="fix it", details="fix it")

        async def revise(draft, critique):
            return "   "

        outcome = await run_critique_loop("good draft", review, max_iterations=2, revise=revise)

        assert outcome.draft == "good draft"

    @pytest.mark.asyncio
    async def test_corrections_ignored_when_not_accepted(self):
        """Should redraft through the reviser when corrections are disabled."""
        verdicts = [Critique(reason="issue", corrected_payload="reviewer text", details="issue"), Approved()]

        async def review(draft):
            return verdicts.pop(0)

        async def revise(draft, critique):
            return "writer text"

        outcome = await run_critique_loop("first", review, max_iterations=2, revise=revise, accept_corrections=False)

        assert outcome.draft == "writer text"


# ===== TESTS: Contract attempts =====

class TestContractAttempts:
    """Tests for bounded JSON-contract attempts."""

    @pytest.mark.asyncio
    async def test_retries_contract_errors_until_success(self):
        """Should retry on ContractError and return the first valid result."""
        seen = []

        async def attempt(number):
            seen.append(number)
            if number < 3:
                raise ContractError("bad json", stage="scribe")
            return "ok"

        assert await run_contract_attempts(attempt, 3) == "ok"
        assert seen == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_reraises_last_contract_error(self):
        """Should re-raise ContractError once attempts are spent."""
        attempts = Counter()

        async def attempt(number):
            attempts.calls += 1
            raise ContractError(f"bad json {number}", stage="sorter")

        with pytest.raises(ContractError, match="bad json 3"):
            await run_contract_attempts(attempt, 3)
        assert attempts.calls == 3

    @pytest.mark.asyncio
    async def test_transport_error_not_retried(self):
        """Should propagate TransportError on the first attempt."""
        attempts = Counter()

        async def attempt(number):
            attempts.calls += 1
            raise TransportError("503 from provider")

        with pytest.raises(TransportError):
            await run_contract_attempts(attempt, 3)
        assert attempts.calls == 1
