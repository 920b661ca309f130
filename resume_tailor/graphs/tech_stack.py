"""
Tech Stack Graph: alignment and sorting of a role's technology list.

Alignment: Aligner (JSON {techStack, rationale}) normalizes aliases and JD
casing and drops non-technologies. It may never add a technology; the
deterministic tech-stack check enforces that. Failure keeps the original.

Sorting: [Sorter (JSON array) -> Editor]* (max 3 attempts). The result is a
permutation of the aligned list; failure keeps the aligned order.
"""

import json
from typing import List, Optional, Sequence

from resume_tailor.common.agent import Critique
from resume_tailor.common.config import Settings
from resume_tailor.common.errors import ContractError
from resume_tailor.common.graph_config import GraphConfig, get_graph_config
from resume_tailor.common.json_utils import extract_json_array, extract_structured
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.contracts import TechStackAlignmentPayload
from resume_tailor.graphs.critique_loop import run_contract_attempts
from resume_tailor.graphs.prompts.experience_prompts import (
    TECH_STACK_ALIGNER_SYSTEM_PROMPT,
    TECH_STACK_EDITOR_SYSTEM_PROMPT,
    TECH_STACK_SORTER_SYSTEM_PROMPT,
    build_tech_stack_prompt,
    build_tech_stack_review_prompt,
)
from resume_tailor.graphs.validators import is_permutation, repair_order, validate_tech_stack

GRAPH_NAME = "tech_stack_sorting"
ALIGNMENT_ATTEMPTS = 2


def _dedupe(items: Sequence[str]) -> List[str]:
    seen = set()
    result = []
    for item in items:
        key = item.strip().lower()
        if key and key not in seen:
            seen.add(key)
            result.append(item.strip())
    return result


def _same_items(proposed: Sequence[object], originals: Sequence[str]) -> bool:
    if not all(isinstance(item, str) for item in proposed):
        return False
    return is_permutation([str(p).strip().lower() for p in proposed], [o.lower() for o in originals])


class TechStackGraph:
    """Align a technology list with the JD and order it by relevance."""

    def __init__(self, context: GraphContext, config: Optional[GraphConfig] = None):
        self.context = context
        self.config = config or get_graph_config(GRAPH_NAME)
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(self, technologies: Sequence[str], refined_jd: str) -> List[str]:
        original = _dedupe(technologies)
        if not original:
            return []

        aligned = await self.align(original, refined_jd)
        if len(aligned) < 2:
            return aligned
        return await self.sort(aligned, refined_jd)

    async def align(self, technologies: List[str], refined_jd: str) -> List[str]:
        ctx = self.context
        aligner = ctx.agent("tech_stack_aligner", TECH_STACK_ALIGNER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        critique = ""

        async def attempt(number: int) -> List[str]:
            nonlocal critique
            ctx.emit("Aligning tech stack...")
            parsed = extract_structured(
                await ctx.call(aligner, build_tech_stack_prompt(technologies, refined_jd, critique)),
                TechStackAlignmentPayload,
            )
            if not parsed.ok:
                critique = f"The JSON was invalid: {parsed.error}"
                parsed.unwrap(stage="aligner")

            proposed = _dedupe(parsed.value.tech_stack)
            report = validate_tech_stack(technologies, proposed)
            if not report.valid:
                critique = report.render()
                raise ContractError(f"Tech stack alignment rejected: {'; '.join(report.issues)}", stage="aligner")
            return proposed

        try:
            return await run_contract_attempts(attempt, ALIGNMENT_ATTEMPTS)
        except ContractError as e:
            ctx.diagnostics.record(GRAPH_NAME, e.stage or "aligner", e, fallback="original")
            self._logger.warning(f"Tech stack alignment failed, keeping original list: {e}")
            return technologies

    async def sort(self, technologies: List[str], refined_jd: str) -> List[str]:
        ctx = self.context
        sorter = ctx.agent("tech_stack_sorter", TECH_STACK_SORTER_SYSTEM_PROMPT, self.config.temperature)
        editor = ctx.agent("tech_stack_editor", TECH_STACK_EDITOR_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        critique = ""

        async def attempt(number: int) -> List[str]:
            nonlocal critique
            ctx.emit("Sorting tech stack...")
            parsed = extract_json_array(await ctx.call(sorter, build_tech_stack_prompt(technologies, refined_jd, critique)))
            if not parsed.ok:
                critique = f"The JSON array was invalid: {parsed.error}"
                parsed.unwrap(stage="sorter")

            proposed = parsed.value
            verdict = await ctx.review(editor, build_tech_stack_review_prompt(json.dumps(proposed), technologies))

            if isinstance(verdict, Critique) and verdict.corrected_payload:
                corrected = extract_json_array(verdict.corrected_payload)
                if corrected.ok and _same_items(corrected.value, technologies):
                    return repair_order(corrected.value, technologies)

            if _same_items(proposed, technologies):
                return repair_order(proposed, technologies)

            critique = verdict.feedback if isinstance(verdict, Critique) else "Every technology must appear exactly once"
            raise ContractError("Sorted tech stack is not a permutation of the original", stage="sorter")

        try:
            return await run_contract_attempts(attempt, self.config.max_iterations)
        except ContractError as e:
            ctx.diagnostics.record(GRAPH_NAME, e.stage or "sorter", e, fallback="identity")
            self._logger.warning(f"Tech stack sorting failed, keeping aligned order: {e}")
            return technologies
