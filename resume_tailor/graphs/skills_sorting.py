"""
Skills Sorting Graph.

Flow per attempt: Brain (ordering rationale) -> Scribe (JSON) -> Editor
(retention check). Up to 3 attempts; a rejected attempt feeds its critique
into the next Brain call.

The result is always a bijection over the original groups and skills. When
every attempt fails, the best partially valid proposal is repaired, or the
original order is kept when nothing parsed.
"""

import json
from typing import Dict, List, Optional, Sequence

from resume_tailor.common.agent import Critique
from resume_tailor.common.config import Settings
from resume_tailor.common.errors import ContractError
from resume_tailor.common.graph_config import GraphConfig, get_graph_config
from resume_tailor.common.json_utils import extract_structured
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.contracts import SkillsSortPayload
from resume_tailor.graphs.critique_loop import run_contract_attempts
from resume_tailor.graphs.prompts.skills_prompts import (
    BRAIN_SYSTEM_PROMPT,
    EDITOR_SYSTEM_PROMPT,
    SCRIBE_SYSTEM_PROMPT,
    build_brain_prompt,
    build_editor_prompt,
    build_scribe_prompt,
)
from resume_tailor.graphs.types import Skill, SkillGroup, SkillsSortResult
from resume_tailor.graphs.validators import (
    check_skills_sort,
    identity_skills_sort,
    repair_skills_sort,
)

GRAPH_NAME = "skills_sorting"


def format_skill_groups(groups: Sequence[SkillGroup]) -> str:
    return "\n".join(
        f"{group.title}: {', '.join(skill.text for skill in group.skills)}"
        for group in groups
    )


def apply_skills_sort(groups: Sequence[SkillGroup], result: SkillsSortResult) -> List[SkillGroup]:
    """
    Rebuild skill groups in sorted order.

    Skill objects are carried over, so flags such as highlight survive.
    """
    by_title: Dict[str, List[SkillGroup]] = {}
    for group in groups:
        by_title.setdefault(group.title, []).append(group)

    rebuilt = []
    for title in result.group_order:
        bucket = by_title.get(title)
        if not bucket:
            continue
        group = bucket.pop(0)
        remaining: List[Skill] = list(group.skills)
        ordered: List[Skill] = []
        for text in result.skill_order.get(title, []):
            match = next((s for s in remaining if s.text == text), None)
            if match is not None:
                remaining.remove(match)
                ordered.append(Skill(text=match.text, highlight=match.highlight))
        ordered.extend(Skill(text=s.text, highlight=s.highlight) for s in remaining)
        rebuilt.append(SkillGroup(title=title, skills=ordered))
    return rebuilt


class SkillsSortingGraph:
    """Order skill groups and skills by relevance to the job."""

    def __init__(self, context: GraphContext, config: Optional[GraphConfig] = None):
        self.context = context
        self.config = config or get_graph_config(GRAPH_NAME)
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(self, refined_jd: str, groups: Sequence[SkillGroup]) -> SkillsSortResult:
        if not groups:
            return identity_skills_sort(groups)

        ctx = self.context
        brain = ctx.agent("skills_brain", BRAIN_SYSTEM_PROMPT, self.config.temperature)
        scribe = ctx.agent("skills_scribe", SCRIBE_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        editor = ctx.agent("skills_editor", EDITOR_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        skills_text = format_skill_groups(groups)
        critique = ""
        best: Optional[SkillsSortResult] = None

        async def attempt(number: int) -> SkillsSortResult:
            nonlocal critique, best
            ctx.emit(f"Sorting skills (attempt {number})...")
            rationale = await ctx.call(brain, build_brain_prompt(refined_jd, skills_text, critique))
            parsed = extract_structured(await ctx.call(scribe, build_scribe_prompt(rationale, skills_text)), SkillsSortPayload)
            if not parsed.ok:
                critique = f"The JSON was invalid: {parsed.error}"
                parsed.unwrap(stage="scribe")

            candidate = SkillsSortResult(group_order=parsed.value.group_order, skill_order=parsed.value.skill_order)
            best = candidate
            report = check_skills_sort(candidate, groups)

            ctx.emit("Verifying skills order...")
            verdict = await ctx.review(
                editor,
                build_editor_prompt(json.dumps(candidate.to_dict()), skills_text, len(groups), report.render()),
            )

            if isinstance(verdict, Critique) and verdict.corrected_payload:
                corrected = extract_structured(verdict.corrected_payload, SkillsSortPayload)
                if corrected.ok:
                    fixed = SkillsSortResult(corrected.value.group_order, corrected.value.skill_order)
                    if check_skills_sort(fixed, groups).valid:
                        return fixed

            if report.valid:
                return candidate

            critique = verdict.feedback if isinstance(verdict, Critique) else report.render()
            raise ContractError(f"Skills order lost data: {'; '.join(report.issues)}", stage="editor")

        try:
            result = await run_contract_attempts(attempt, self.config.max_iterations)
        except ContractError as e:
            fallback = "repaired" if best is not None else "identity"
            ctx.diagnostics.record(GRAPH_NAME, e.stage or "scribe", e, fallback=fallback)
            self._logger.warning(f"Skills sorting failed after {self.config.max_iterations} attempts, using {fallback} order: {e}")
            if best is None:
                return identity_skills_sort(groups)
            return repair_skills_sort(best.group_order, best.skill_order, groups)

        self._logger.info(f"Skills sorted: {result.group_order}")
        return result


async def sort_skills(refined_jd: str, groups: Sequence[SkillGroup], context: GraphContext) -> SkillsSortResult:
    """Convenience function to run the skills sorting graph."""
    return await SkillsSortingGraph(context).run(refined_jd, groups)
