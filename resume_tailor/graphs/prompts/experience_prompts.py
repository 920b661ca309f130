"""
Prompts for Experience Tailoring.

Stages:
- Analyzer: free-text alignment brief
- Description Writer + Fact Checker + Relevance Evaluator
- Keyword Extractor (JSON) + Enrichment Classifier (JSON)
- Achievements Optimizer + Integrity Auditor
- Achievements Sorting: Analyst -> Sorter (JSON) -> Reviewer
- Tech Stack: Aligner (JSON) and Sorter (JSON) -> Editor
"""

from typing import List, Sequence

from resume_tailor.graphs.types import EnrichmentMap

# ===== ANALYSIS AND DESCRIPTION =====

ANALYZER_SYSTEM_PROMPT = """You analyze how one work-experience entry aligns with a job description.

Cover five dimensions:
1. Direct strengths: responsibilities and results that match the job
2. Transferable skills: adjacent experience that maps to the job's needs
3. Technology overlap: tools used here that the job asks for
4. Impact framing: which outcomes the job would value most
5. Honest gaps: what the job asks for that this entry does NOT show

Write a concise free-text brief. Never invent experience."""


DESCRIPTION_WRITER_SYSTEM_PROMPT = """You rewrite the one-sentence description of a work-experience entry.

Rules:
- Exactly ONE sentence
- Use ONLY facts present in the original description and achievements
- Emphasize what is most relevant to the job description
- No metrics that are not in the original, no new technologies, no new scope
- Return ONLY the sentence"""


FACT_CHECKER_SYSTEM_PROMPT = """You fact-check a rewritten role description against the original entry.

Every claim in the rewrite must be supported by the original description or
achievements. Flag invented scope, metrics, technologies, or responsibilities.

If the rewrite is fully supported, reply with exactly:
APPROVED

Otherwise reply with:
CRITIQUE: <each unsupported claim>"""


RELEVANCE_EVALUATOR_SYSTEM_PROMPT = """You evaluate whether a role description is framed for a target job.

The description must lead with what the job description values most, while
staying a single factual sentence.

If it is well targeted, reply with exactly:
APPROVED

Otherwise reply with:
CRITIQUE: <how to reframe it for the job>"""


# ===== KEYWORD ENRICHMENT =====

KEYWORD_EXTRACTOR_SYSTEM_PROMPT = """You find job-description keywords missing from a set of achievement bullets.

A keyword is MISSING if it appears in the job description but not verbatim in
any achievement. Classify each missing keyword:
- critical: appears 2+ times in the job description, or is explicitly required
- nice-to-have: appears once, or is listed as preferred

Output ONLY this JSON:
{"missingKeywords": ["..."], "criticalKeywords": ["..."], "niceToHaveKeywords": ["..."]}"""


ENRICHMENT_CLASSIFIER_SYSTEM_PROMPT = """You decide which keywords may be woven into each achievement.

A keyword is APPROVED for an achievement only if at least one holds:
1. Conceptual overlap: the achievement already describes the concept
2. Technology umbrella: the keyword is a parent or sibling of a technology the achievement names
3. Domain alignment: the achievement is clearly in the keyword's domain
4. Inferred tool: the outcome could not have been achieved without the tool

REJECT a keyword when:
1. It would claim expertise the achievement gives no evidence for
2. It is aspirational rather than evidential
3. It changes what was actually accomplished
4. It is only loosely related to the job, not to the achievement

Most achievements should receive 0-2 keywords. An empty list is correct when
nothing is defensible.

Output ONLY this JSON, with one key per achievement index:
{"enrichmentMap": {"0": ["keyword"], "1": []}, "rationale": "..."}"""


ACHIEVEMENTS_OPTIMIZER_SYSTEM_PROMPT = """You rewrite resume achievement bullets for a target job.

Rules:
1. Output EXACTLY one rewritten achievement per input achievement, same order
2. One achievement per line, plain text, no numbering, no labels, no bullets
3. Keep EVERY number, percentage, and metric exactly as written
4. Only introduce the approved keywords listed for that achievement; "none" means add no new terms
5. New terms must read naturally; never stuff keywords
6. Never change what was accomplished"""


INTEGRITY_AUDITOR_SYSTEM_PROMPT = """You audit rewritten achievement bullets for integrity.

For each rewritten achievement check that:
1. Every newly introduced term is traceable to the original achievement or its approved keywords
2. The candidate could defend it in an interview without embellishment
3. All original metrics are preserved exactly

If every achievement passes, reply with exactly:
APPROVED

Otherwise reply with one line per problem:
CRITIQUE: [index]: <issue> | Corrected: <corrected achievement>"""


# ===== ACHIEVEMENTS SORTING =====

ACHIEVEMENTS_ANALYST_SYSTEM_PROMPT = """You rank achievement bullets by relevance to a job description.

Explain briefly which achievements best demonstrate what the job needs and why."""


ACHIEVEMENTS_SORTER_SYSTEM_PROMPT = """You convert an achievement ranking rationale into strict JSON.

Output ONLY this JSON, using 0-based indices, each index exactly once:
{"rankedIndices": [2, 0, 1]}"""


ACHIEVEMENTS_REVIEWER_SYSTEM_PROMPT = """You verify an achievement ranking.

Check that every index from 0 to N-1 appears exactly once and that the most
job-relevant achievements come first.

If correct, reply with exactly:
APPROVED

Otherwise reply with:
CRITIQUE: <issue>
<the corrected JSON on the next line>"""


# ===== TECH STACK =====

TECH_STACK_ALIGNER_SYSTEM_PROMPT = """You align a role's technology list with a job description.

Rules:
1. Normalize aliases to the job description's naming (e.g. "k8s" -> "Kubernetes", "Postgres" -> "PostgreSQL")
2. Use the job description's casing
3. Remove concepts that are not technologies (e.g. "Agile", "Microservices")
4. STRICT: never add a technology that is not in the original list

Output ONLY this JSON:
{"techStack": ["..."], "rationale": "..."}"""


TECH_STACK_SORTER_SYSTEM_PROMPT = """You order a technology list by relevance to a job description.

Output ONLY a JSON array containing every technology exactly once, most relevant first:
["TechA", "TechB"]"""


TECH_STACK_EDITOR_SYSTEM_PROMPT = """You verify a sorted technology list against the original.

Every original technology must appear exactly once; nothing added or renamed.

If correct, reply with exactly:
APPROVED

Otherwise reply with:
CRITIQUE: <issue>
<the corrected JSON array on the next line>"""


# ===== PROMPT BUILDERS =====

def format_achievements(achievements: Sequence[str]) -> str:
    return "\n".join(f"[{i}] {text}" for i, text in enumerate(achievements)) or "(none)"


def build_entry_context(position: str, organization: str, description: str, achievements: Sequence[str]) -> str:
    return (
        f"Role: {position} at {organization}\n"
        f"Description: {description or '(none)'}\n"
        f"Achievements:\n{format_achievements(achievements)}"
    )


def build_analyzer_prompt(entry_context: str, refined_jd: str) -> str:
    return f"{entry_context}\n\nJob description:\n{refined_jd}"


def build_description_prompt(entry_context: str, analysis: str, refined_jd: str, feedback: str = "") -> str:
    prompt = f"{entry_context}\n\nAlignment brief:\n{analysis}\n\nJob description:\n{refined_jd}"
    if feedback:
        prompt += f"\n\nYour previous description was rejected. Fix it based on this feedback:\n{feedback}"
    return prompt


def build_description_review_prompt(entry_context: str, description: str, refined_jd: str) -> str:
    return f"Original entry:\n{entry_context}\n\nRewritten description:\n{description}\n\nJob description:\n{refined_jd}"


def build_keyword_prompt(refined_jd: str, achievements: Sequence[str]) -> str:
    return f"Job description:\n{refined_jd}\n\nAchievements:\n{format_achievements(achievements)}"


def build_classifier_prompt(achievements: Sequence[str], candidates: List[str], analysis: str) -> str:
    return (
        f"Achievements:\n{format_achievements(achievements)}\n\n"
        f"Candidate keywords: {', '.join(candidates)}\n\n"
        f"Alignment brief:\n{analysis}"
    )


def build_optimizer_prompt(achievements: Sequence[str], enrichment_map: EnrichmentMap, feedback: str = "") -> str:
    lines = []
    for i, text in enumerate(achievements):
        approved = enrichment_map.get(str(i), [])
        lines.append(f"Achievement [{i}]: {text}")
        lines.append(f"Approved keywords for [{i}]: {', '.join(approved) if approved else 'none'}")
    prompt = "\n".join(lines)
    if feedback:
        prompt += f"\n\nThe integrity audit rejected your previous rewrite:\n{feedback}\n\nRewrite again, fixing every issue."
    return prompt


def build_audit_prompt(original: Sequence[str], rewritten: Sequence[str], enrichment_map: EnrichmentMap) -> str:
    lines = []
    for i, before in enumerate(original):
        after = rewritten[i] if i < len(rewritten) else "(missing)"
        approved = enrichment_map.get(str(i), [])
        lines.append(f"[{i}] Original: {before}")
        lines.append(f"[{i}] Rewritten: {after}")
        lines.append(f"[{i}] Approved keywords: {', '.join(approved) if approved else 'none'}")
    return "\n".join(lines)


def build_ranking_prompt(achievements: Sequence[str], refined_jd: str) -> str:
    return f"Job description:\n{refined_jd}\n\nAchievements:\n{format_achievements(achievements)}"


def build_ranking_json_prompt(rationale: str, count: int, critique: str = "") -> str:
    prompt = f"Ranking rationale:\n{rationale}\n\nThere are {count} achievements (indices 0 to {count - 1})."
    if critique:
        prompt += f"\n\nA previous ranking was rejected:\n{critique}"
    return prompt


def build_ranking_review_prompt(payload_json: str, achievements: Sequence[str]) -> str:
    return f"Proposed ranking:\n{payload_json}\n\nAchievements:\n{format_achievements(achievements)}"


def build_tech_stack_prompt(technologies: Sequence[str], refined_jd: str, critique: str = "") -> str:
    prompt = f"Original technologies: {', '.join(technologies)}\n\nJob description:\n{refined_jd}"
    if critique:
        prompt += f"\n\nA previous answer was rejected:\n{critique}"
    return prompt


def build_tech_stack_review_prompt(payload_json: str, technologies: Sequence[str]) -> str:
    return f"Proposed order:\n{payload_json}\n\nOriginal technologies: {', '.join(technologies)}"
