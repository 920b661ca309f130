"""
Achievements Sorting Graph.

Flow: Analyst (ranking rationale) -> [Sorter (JSON) -> Reviewer]* (max 3 attempts)

The ranking is always a permutation of the achievement indices. A ranking
that never validates is repaired (duplicates and out-of-range indices
dropped, missing indices appended), or the original order is kept when no
attempt produced parsable JSON.
"""

import json
from typing import List, Optional, Sequence

from resume_tailor.common.agent import Critique
from resume_tailor.common.config import Settings
from resume_tailor.common.errors import ContractError
from resume_tailor.common.graph_config import GraphConfig, get_graph_config
from resume_tailor.common.json_utils import extract_structured
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.contracts import AchievementRankingPayload
from resume_tailor.graphs.critique_loop import run_contract_attempts
from resume_tailor.graphs.prompts.experience_prompts import (
    ACHIEVEMENTS_ANALYST_SYSTEM_PROMPT,
    ACHIEVEMENTS_REVIEWER_SYSTEM_PROMPT,
    ACHIEVEMENTS_SORTER_SYSTEM_PROMPT,
    build_ranking_json_prompt,
    build_ranking_prompt,
    build_ranking_review_prompt,
)
from resume_tailor.graphs.types import AchievementsSortResult
from resume_tailor.graphs.validators import is_permutation, repair_indices

GRAPH_NAME = "achievements_sorting"


def _valid_ranking(indices: List[int], count: int) -> bool:
    return is_permutation(indices, list(range(count)))


class AchievementsSortingGraph:
    """Rank achievements by relevance to the job."""

    def __init__(self, context: GraphContext, config: Optional[GraphConfig] = None):
        self.context = context
        self.config = config or get_graph_config(GRAPH_NAME)
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(self, achievements: Sequence[str], refined_jd: str) -> AchievementsSortResult:
        count = len(achievements)
        if count < 2:
            return AchievementsSortResult(ranked_indices=list(range(count)))

        ctx = self.context
        analyst = ctx.agent("achievements_analyst", ACHIEVEMENTS_ANALYST_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        sorter = ctx.agent("achievements_sorter", ACHIEVEMENTS_SORTER_SYSTEM_PROMPT, self.config.temperature)
        reviewer = ctx.agent("achievements_reviewer", ACHIEVEMENTS_REVIEWER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        ctx.emit("Ranking achievements...")
        rationale = await ctx.call(analyst, build_ranking_prompt(achievements, refined_jd))

        critique = ""
        best: Optional[List[int]] = None

        async def attempt(number: int) -> List[int]:
            nonlocal critique, best
            parsed = extract_structured(
                await ctx.call(sorter, build_ranking_json_prompt(rationale, count, critique)),
                AchievementRankingPayload,
            )
            if not parsed.ok:
                critique = f"The JSON was invalid: {parsed.error}"
                parsed.unwrap(stage="sorter")

            ranking = parsed.value.ranked_indices
            best = ranking
            verdict = await ctx.review(reviewer, build_ranking_review_prompt(json.dumps({"rankedIndices": ranking}), achievements))

            if isinstance(verdict, Critique) and verdict.corrected_payload:
                corrected = extract_structured(verdict.corrected_payload, AchievementRankingPayload)
                if corrected.ok and _valid_ranking(corrected.value.ranked_indices, count):
                    return corrected.value.ranked_indices

            if _valid_ranking(ranking, count):
                return ranking

            critique = verdict.feedback if isinstance(verdict, Critique) else f"Use every index 0-{count - 1} exactly once"
            raise ContractError(f"Ranking is not a permutation of 0..{count - 1}: {ranking}", stage="sorter")

        try:
            ranking = await run_contract_attempts(attempt, self.config.max_iterations)
        except ContractError as e:
            fallback = "repaired" if best is not None else "identity"
            ctx.diagnostics.record(GRAPH_NAME, e.stage or "sorter", e, fallback=fallback)
            self._logger.warning(f"Achievement ranking failed, using {fallback} order: {e}")
            ranking = repair_indices(best or [], count)

        return AchievementsSortResult(ranked_indices=ranking)
