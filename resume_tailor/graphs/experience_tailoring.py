"""
Experience Tailoring Graph.

Rewrites one work-experience entry for the target job while gating against
fabrication. Stages:

1. Analyzer: free-text alignment brief (strengths, transferable skills, gaps)
2. Description Writer with two critique loops (fact check, relevance)
3. Keyword Extractor: JD keywords missing from the achievements (JSON)
4. Enrichment Classifier: per-achievement approved keywords (JSON)
5. Achievements Optimizer: rewrite each bullet with only its approved keywords
6. Integrity Auditor loop: re-run the Optimizer with audit feedback
7. Achievements Sorting and Tech Stack alignment/sorting

JSON stages degrade to empty results (no keywords, no injection permitted);
the rewrite still proceeds without enrichment. After the auditor, each
bullet is checked deterministically and reverted to its original text if it
lost a metric or gained an unapproved keyword.

Usage:
    graph = ExperienceTailoringGraph(context)
    result = await graph.run(entry, refined_jd)
"""

import re
from typing import Dict, List, Sequence, Tuple

from resume_tailor.common.agent import Critique, ReviewVerdict
from resume_tailor.common.config import Settings
from resume_tailor.common.graph_config import get_graph_config
from resume_tailor.common.json_utils import extract_structured
from resume_tailor.graphs.achievements_sorting import AchievementsSortingGraph
from resume_tailor.graphs.base import GraphContext
from resume_tailor.graphs.contracts import EnrichmentPayload, KeywordExtractionPayload
from resume_tailor.graphs.critique_loop import run_critique_loop
from resume_tailor.graphs.prompts.experience_prompts import (
    ACHIEVEMENTS_OPTIMIZER_SYSTEM_PROMPT,
    ANALYZER_SYSTEM_PROMPT,
    DESCRIPTION_WRITER_SYSTEM_PROMPT,
    ENRICHMENT_CLASSIFIER_SYSTEM_PROMPT,
    FACT_CHECKER_SYSTEM_PROMPT,
    INTEGRITY_AUDITOR_SYSTEM_PROMPT,
    KEYWORD_EXTRACTOR_SYSTEM_PROMPT,
    RELEVANCE_EVALUATOR_SYSTEM_PROMPT,
    build_analyzer_prompt,
    build_audit_prompt,
    build_classifier_prompt,
    build_description_prompt,
    build_description_review_prompt,
    build_entry_context,
    build_keyword_prompt,
    build_optimizer_prompt,
)
from resume_tailor.graphs.tech_stack import TechStackGraph
from resume_tailor.graphs.types import (
    EnrichmentMap,
    ExperienceTailoringResult,
    KeywordExtractionResult,
    WorkExperience,
)
from resume_tailor.graphs.validators import (
    contains_keyword,
    find_gating_violations,
    missing_metrics,
    validate_achievements,
    validate_description,
)

GRAPH_NAME = "experience_tailoring"

_ECHOED_LABEL = re.compile(
    r"^\s*(?:[-*•]\s*)?(?:(?:rewritten\s+)?achievement\s*\[?\d+\]?|\[\d+\])\s*[:.)-]?\s*",
    re.IGNORECASE,
)
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")


def parse_achievement_lines(text: str) -> List[str]:
    """
    Parse optimizer output into one achievement per line.

    Drops blank lines and echoed "Approved keywords" lines, and strips
    echoed labels such as "Achievement [0]:", "[1]" or bullets.
    """
    lines = []
    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line or re.match(r"^approved keywords", line, re.IGNORECASE):
            continue
        line = _ECHOED_LABEL.sub("", line, count=1)
        line = _BULLET.sub("", line, count=1).strip()
        if line:
            lines.append(line)
    return lines


def empty_enrichment_map(count: int) -> EnrichmentMap:
    return {str(i): [] for i in range(count)}


def normalize_enrichment_map(raw: Dict[str, List[str]], candidates: Sequence[str], count: int) -> EnrichmentMap:
    """
    Restrict a classifier map to known indices and candidate keywords.

    Every index gets an entry; keywords are mapped back to the candidate's
    casing and deduplicated.
    """
    by_key = {c.lower(): c for c in candidates}
    normalized = empty_enrichment_map(count)
    for key, keywords in (raw or {}).items():
        index = str(key).strip().strip("[]")
        if index not in normalized:
            continue
        for keyword in keywords or []:
            candidate = by_key.get(str(keyword).strip().lower())
            if candidate and candidate not in normalized[index]:
                normalized[index].append(candidate)
    return normalized


def restore_blank_achievements(originals: Sequence[str], tailored: Sequence[str]) -> List[str]:
    """Put blank achievements back at their original positions, untouched."""
    rewritten = iter(tailored)
    return [a if not (a and a.strip()) else next(rewritten) for a in originals]


class ExperienceTailoringGraph:
    """Tailor one work-experience entry to the job."""

    def __init__(self, context: GraphContext):
        self.context = context
        self.fact_check_config = get_graph_config("description_fact_check")
        self.relevance_config = get_graph_config("description_relevance")
        self.audit_config = get_graph_config("integrity_audit")
        self._logger = context.logger(__name__, GRAPH_NAME)

    async def run(self, entry: WorkExperience, refined_jd: str) -> ExperienceTailoringResult:
        ctx = self.context
        achievements = [a for a in entry.key_achievements if a and a.strip()]
        entry_context = build_entry_context(entry.position, entry.organization, entry.description, achievements)

        self._logger.info(f"Tailoring {entry.position} at {entry.organization} ({len(achievements)} achievements)")

        ctx.emit("Analyzing experience alignment...")
        analyzer = ctx.agent("experience_analyzer", ANALYZER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        analysis = await ctx.call(analyzer, build_analyzer_prompt(entry_context, refined_jd))

        description = await self._tailor_description(entry, entry_context, analysis, refined_jd)

        keywords = KeywordExtractionResult()
        enrichment_map: EnrichmentMap = {}
        reverted: List[int] = []
        tailored = list(achievements)
        if achievements:
            keywords = await self._extract_keywords(achievements, refined_jd)
            enrichment_map = await self._classify_enrichment(achievements, keywords, analysis)
            tailored, reverted = await self._optimize_achievements(achievements, keywords, enrichment_map)

            ranking = await AchievementsSortingGraph(ctx).run(tailored, refined_jd)
            tailored = ranking.apply(tailored)

        tailored = restore_blank_achievements(entry.key_achievements, tailored)

        tech_stack = None
        if entry.technologies is not None:
            tech_stack = await TechStackGraph(ctx).run(entry.technologies, refined_jd)

        return ExperienceTailoringResult(
            description=description,
            achievements=tailored,
            tech_stack=tech_stack,
            keywords=keywords,
            enrichment_map=enrichment_map,
            reverted_indices=reverted,
        )

    # ===== DESCRIPTION =====

    async def _tailor_description(
        self,
        entry: WorkExperience,
        entry_context: str,
        analysis: str,
        refined_jd: str,
    ) -> str:
        ctx = self.context
        writer = ctx.agent("description_writer", DESCRIPTION_WRITER_SYSTEM_PROMPT, self.fact_check_config.temperature)
        fact_checker = ctx.agent("fact_checker", FACT_CHECKER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        relevance = ctx.agent("relevance_evaluator", RELEVANCE_EVALUATOR_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        ctx.emit("Tailoring description...")
        draft = (await ctx.call(writer, build_description_prompt(entry_context, analysis, refined_jd))).strip()

        async def rewrite(current: str, critique: Critique) -> str:
            ctx.emit("Revising description...")
            prompt = build_description_prompt(entry_context, analysis, refined_jd, critique.feedback)
            return (await ctx.call(writer, prompt)).strip()

        async def fact_check(current: str) -> ReviewVerdict:
            ctx.emit("Fact-checking description...")
            return await ctx.review(fact_checker, build_description_review_prompt(entry_context, current, refined_jd))

        async def evaluate_relevance(current: str) -> ReviewVerdict:
            ctx.emit("Evaluating description relevance...")
            return await ctx.review(relevance, build_description_review_prompt(entry_context, current, refined_jd))

        checked = await run_critique_loop(
            draft, fact_check, self.fact_check_config.max_iterations,
            revise=rewrite, accept_corrections=False, logger=self._logger,
        )
        targeted = await run_critique_loop(
            checked.draft, evaluate_relevance, self.relevance_config.max_iterations,
            revise=rewrite, accept_corrections=False, logger=self._logger,
        )

        report = validate_description(entry.description, targeted.draft)
        if not report.valid and entry.description.strip():
            self._logger.info(f"Keeping original description: {'; '.join(report.issues)}")
            return entry.description
        return targeted.draft

    # ===== KEYWORDS =====

    async def _extract_keywords(self, achievements: List[str], refined_jd: str) -> KeywordExtractionResult:
        ctx = self.context
        extractor = ctx.agent("keyword_extractor", KEYWORD_EXTRACTOR_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        ctx.emit("Extracting missing keywords...")
        parsed = extract_structured(await ctx.call(extractor, build_keyword_prompt(refined_jd, achievements)), KeywordExtractionPayload)
        if not parsed.ok:
            ctx.diagnostics.record(GRAPH_NAME, "keyword_extractor", ValueError(parsed.error), fallback="empty")
            self._logger.warning(f"Keyword extraction unparsable, continuing without enrichment: {parsed.error}")
            return KeywordExtractionResult()

        joined = "\n".join(achievements)

        def absent(items: List[str]) -> List[str]:
            # Keywords already present verbatim are not "missing"
            return [k.strip() for k in items if k and k.strip() and not contains_keyword(joined, k.strip())]

        payload = parsed.value
        result = KeywordExtractionResult(
            missing_keywords=absent(payload.missing_keywords),
            critical_keywords=absent(payload.critical_keywords),
            nice_to_have_keywords=absent(payload.nice_to_have_keywords),
        )
        self._logger.debug(f"Missing keywords: {result.missing_keywords}")
        return result

    async def _classify_enrichment(
        self,
        achievements: List[str],
        keywords: KeywordExtractionResult,
        analysis: str,
    ) -> EnrichmentMap:
        ctx = self.context
        candidates = keywords.candidates()
        if not candidates:
            self._logger.debug("No candidate keywords, skipping enrichment classifier")
            return empty_enrichment_map(len(achievements))

        classifier = ctx.agent("enrichment_classifier", ENRICHMENT_CLASSIFIER_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)

        ctx.emit("Classifying keyword enrichment...")
        parsed = extract_structured(
            await ctx.call(classifier, build_classifier_prompt(achievements, candidates, analysis)),
            EnrichmentPayload,
        )
        if not parsed.ok:
            ctx.diagnostics.record(GRAPH_NAME, "enrichment_classifier", ValueError(parsed.error), fallback="empty")
            self._logger.warning(f"Enrichment map unparsable, no keyword injection permitted: {parsed.error}")
            return empty_enrichment_map(len(achievements))

        return normalize_enrichment_map(parsed.value.enrichment_map, candidates, len(achievements))

    # ===== ACHIEVEMENTS =====

    def _integrity_problems(
        self,
        original: List[str],
        rewritten: List[str],
        candidates: List[str],
        enrichment_map: EnrichmentMap,
    ) -> List[str]:
        problems = list(validate_achievements(original, rewritten).issues)
        if len(rewritten) != len(original):
            return problems
        for i, (before, after) in enumerate(zip(original, rewritten)):
            lost = missing_metrics(before, after)
            if lost:
                problems.append(f"[{i}]: metrics changed or removed, keep exactly: {', '.join(lost)}")
        for i, flagged in find_gating_violations(original, rewritten, candidates, enrichment_map).items():
            problems.append(f"[{i}]: unapproved keywords introduced ({', '.join(flagged)})")
        return problems

    async def _optimize_achievements(
        self,
        achievements: List[str],
        keywords: KeywordExtractionResult,
        enrichment_map: EnrichmentMap,
    ) -> Tuple[List[str], List[int]]:
        ctx = self.context
        optimizer = ctx.agent("achievements_optimizer", ACHIEVEMENTS_OPTIMIZER_SYSTEM_PROMPT, self.audit_config.temperature)
        auditor = ctx.agent("integrity_auditor", INTEGRITY_AUDITOR_SYSTEM_PROMPT, Settings.ANALYTICAL_TEMPERATURE)
        candidates = keywords.candidates()

        ctx.emit("Optimizing achievements...")
        draft = "\n".join(parse_achievement_lines(await ctx.call(optimizer, build_optimizer_prompt(achievements, enrichment_map))))

        async def audit(current: str) -> ReviewVerdict:
            ctx.emit("Auditing achievement integrity...")
            rewritten = parse_achievement_lines(current)
            verdict = await ctx.review(auditor, build_audit_prompt(achievements, rewritten, enrichment_map))
            problems = self._integrity_problems(achievements, rewritten, candidates, enrichment_map)
            if verdict.approved and problems:
                return Critique(reason=problems[0], details="\n".join(problems))
            if isinstance(verdict, Critique) and problems:
                return Critique(reason=verdict.reason, details="\n".join([verdict.feedback] + problems))
            return verdict

        async def reoptimize(current: str, critique: Critique) -> str:
            ctx.emit("Re-optimizing achievements...")
            text = await ctx.call(optimizer, build_optimizer_prompt(achievements, enrichment_map, critique.feedback))
            return "\n".join(parse_achievement_lines(text))

        outcome = await run_critique_loop(
            draft, audit, self.audit_config.max_iterations,
            revise=reoptimize, accept_corrections=False, logger=self._logger,
        )

        return self._enforce_integrity(achievements, parse_achievement_lines(outcome.draft), candidates, enrichment_map)

    def _enforce_integrity(
        self,
        original: List[str],
        rewritten: List[str],
        candidates: List[str],
        enrichment_map: EnrichmentMap,
    ) -> Tuple[List[str], List[int]]:
        """Revert bullets that break count, metric, or keyword-gating rules."""
        if len(rewritten) != len(original):
            self._logger.warning(
                f"Optimizer returned {len(rewritten)} achievements for {len(original)}, keeping originals"
            )
            return list(original), list(range(len(original)))

        gating = find_gating_violations(original, rewritten, candidates, enrichment_map)
        final: List[str] = []
        reverted: List[int] = []
        for i, (before, after) in enumerate(zip(original, rewritten)):
            if i in gating or missing_metrics(before, after) or len(after.strip()) < 10:
                final.append(before)
                reverted.append(i)
            else:
                final.append(after)

        if reverted:
            self._logger.info(f"Reverted achievements {reverted} to original text")
        return final, reverted


async def tailor_experience(entry: WorkExperience, refined_jd: str, context: GraphContext) -> ExperienceTailoringResult:
    """Convenience function to run the experience tailoring graph."""
    return await ExperienceTailoringGraph(context).run(entry, refined_jd)
