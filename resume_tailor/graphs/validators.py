"""
Deterministic validators used by the task graphs.

LLM reviewers are advisory; these checks are not. They back the reviewer
prompts with hard facts (format violations, unknown skills) and enforce the
pipeline invariants after the LLM stages have run:

- JD format: four fixed sections, <=5 items where bounded, only # and - markdown
- Summary skills: every named technology must come from the candidate's skills
- Orderings: every sort result is repaired into a bijection of its input
- Rewrites: achievement count, metrics, and keyword gating are preserved
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from resume_tailor.graphs.types import EnrichmentMap, SkillGroup, SkillsSortResult


@dataclass
class ValidationReport:
    """Outcome of a deterministic check."""

    valid: bool
    issues: List[str] = field(default_factory=list)

    def render(self) -> str:
        if self.valid:
            return "PASSED: no issues found"
        return "FAILED:\n" + "\n".join(f"- {issue}" for issue in self.issues)


def _report(issues: List[str]) -> ValidationReport:
    return ValidationReport(valid=not issues, issues=issues)


# ===== JD FORMAT =====

JD_SECTIONS = ("position-title", "core-responsibilities", "desired-qualifications", "required-skills")
JD_BOUNDED_SECTIONS = ("core-responsibilities", "desired-qualifications")
JD_MAX_ITEMS = 5

_BOLD = re.compile(r"\*\*[^*]+\*\*")
_SINGLE_STAR = re.compile(r"(?<![*\w])\*(?!\*)[^*\n]+\*(?!\*)")
_STAR_BULLET = re.compile(r"^\s*\*\s+", re.MULTILINE)
_LIST_ITEM = re.compile(r"^\s*-\s+", re.MULTILINE)


def split_jd_sections(text: str) -> Dict[str, str]:
    """Split a refined JD into {section name: body} using '# name' headers."""
    sections: Dict[str, str] = {}
    current: Optional[str] = None
    lines: List[str] = []
    for line in (text or "").splitlines():
        header = re.match(r"^\s*#\s+([\w-]+)\s*$", line)
        if header:
            if current is not None:
                sections[current] = "\n".join(lines).strip()
            current = header.group(1).lower()
            lines = []
        elif current is not None:
            lines.append(line)
    if current is not None:
        sections[current] = "\n".join(lines).strip()
    return sections


def validate_jd_format(text: str) -> ValidationReport:
    """Check the four-section refined JD structure."""
    issues: List[str] = []
    sections = split_jd_sections(text)

    for name in JD_SECTIONS:
        if name not in sections:
            issues.append(f"Missing section '# {name}'")

    if _BOLD.search(text or ""):
        issues.append("Bold markdown (**text**) is not allowed")
    elif _SINGLE_STAR.search(text or "") or _STAR_BULLET.search(text or ""):
        issues.append("Italic/bullet '*' markdown is not allowed; use '-' for list items")

    for name in JD_BOUNDED_SECTIONS:
        body = sections.get(name)
        if body is None:
            continue
        count = len(_LIST_ITEM.findall(body))
        if count > JD_MAX_ITEMS:
            issues.append(f"Section '# {name}' has {count} items (max {JD_MAX_ITEMS})")

    return _report(issues)


# ===== JOB TITLE CLEANUP =====

_EMPHASIS_PATTERNS = (
    re.compile(r"\*\*(.+?)\*\*"),
    re.compile(r"\*(.+?)\*"),
    re.compile(r"(?<!\w)_(.+?)_(?!\w)"),
    re.compile(r"~~(.+?)~~"),
    re.compile(r"`(.+?)`"),
)


def strip_markdown_emphasis(text: str) -> str:
    """Remove markdown emphasis, stray markers, and wrapping quotes."""
    result = (text or "").strip()
    for pattern in _EMPHASIS_PATTERNS:
        result = pattern.sub(r"\1", result)
    result = re.sub(r"[*`~]", "", result)
    result = re.sub(r"^#+\s*", "", result)
    return result.strip().strip("\"'").strip()


# ===== SUMMARY SKILLS =====

SUMMARY_IGNORED_WORDS = frozenset({
    "the", "and", "for", "with", "years", "experience", "senior", "lead",
    "engineer", "developer", "systems", "solutions", "scalable", "building",
    "expert", "specializing", "architecting", "architected", "focusing",
    "align", "innovation", "impact", "production",
})

_SKILL_TOKEN_PATTERNS = (
    re.compile(r"\b[A-Z][a-zA-Z0-9]+\b"),  # Capitalized words
    re.compile(r"\b[A-Z]{2,}\b"),  # Acronyms
    re.compile(r"\b[a-zA-Z0-9]+\.[a-zA-Z0-9]+\b"),  # Dotted names (Node.js)
)
_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+(?=[A-Z\"'])")


@dataclass
class SkillValidation:
    valid: bool
    violations: List[str] = field(default_factory=list)


def split_sentences(text: str) -> List[str]:
    """Split prose into sentences, ignoring dots inside names like Node.js."""
    return [s for s in (p.strip() for p in _SENTENCE_SPLIT.split((text or "").strip())) if s]


def validate_skills_in_summary(summary: str, allowed_skills: Iterable[str]) -> SkillValidation:
    """
    Flag technology-looking tokens that are not in the allowed skill set.

    A token is allowed when it equals, contains, or is contained by an
    allowed skill (case-insensitive). Short tokens and a fixed list of
    common resume words are ignored, as is the plain capitalized first word
    of each sentence.
    """
    allowed = [s.lower() for s in allowed_skills if s and s.strip()]
    violations: List[str] = []
    seen = set()

    sentence_starts = set()
    for sentence in split_sentences(summary):
        first = re.match(r"[\"']?([A-Z][a-z0-9]+)\b", sentence)
        if first:
            sentence_starts.add(first.group(1))

    tokens: List[str] = []
    for pattern in _SKILL_TOKEN_PATTERNS:
        tokens.extend(pattern.findall(summary or ""))

    for token in tokens:
        if token in sentence_starts and "." not in token:
            continue
        lowered = token.lower()
        if len(lowered) < 3 or lowered in SUMMARY_IGNORED_WORDS or lowered in seen:
            continue
        seen.add(lowered)
        if not any(lowered == skill or lowered in skill or skill in lowered for skill in allowed):
            violations.append(token)

    return SkillValidation(valid=not violations, violations=violations)


# ===== ORDERINGS =====

def _key(text: str) -> str:
    return " ".join(str(text).split()).lower()


def repair_order(proposed: Sequence[object], originals: Sequence[str]) -> List[str]:
    """
    Repair a proposed ordering into a permutation of originals.

    Items are matched case-insensitively; unknown items and duplicates are
    dropped, and originals the proposal lost are appended in original order.
    """
    remaining: Dict[str, List[str]] = {}
    for item in originals:
        remaining.setdefault(_key(item), []).append(item)

    ordered: List[str] = []
    for item in proposed or []:
        if not isinstance(item, str):
            continue
        bucket = remaining.get(_key(item))
        if bucket:
            ordered.append(bucket.pop(0))

    used = list(ordered)
    for item in originals:
        if item in used:
            used.remove(item)
        else:
            ordered.append(item)
    return ordered


def repair_indices(proposed: Sequence[object], count: int) -> List[int]:
    """Repair a proposed index ranking into a permutation of range(count)."""
    ordered: List[int] = []
    for value in proposed or []:
        if isinstance(value, bool):
            continue
        try:
            index = int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            continue
        if 0 <= index < count and index not in ordered:
            ordered.append(index)
    ordered.extend(i for i in range(count) if i not in ordered)
    return ordered


def is_permutation(proposed: Sequence[object], originals: Sequence[object]) -> bool:
    """True if proposed contains exactly the originals, each once."""
    return len(proposed) == len(originals) and sorted(map(str, proposed)) == sorted(map(str, originals))


def identity_skills_sort(groups: Sequence[SkillGroup]) -> SkillsSortResult:
    return SkillsSortResult(
        group_order=[g.title for g in groups],
        skill_order={g.title: [s.text for s in g.skills] for g in groups},
    )


def repair_skills_sort(
    group_order: Sequence[object],
    skill_order: Dict[str, Sequence[object]],
    groups: Sequence[SkillGroup],
) -> SkillsSortResult:
    """Repair a proposed skills ordering into a bijection over every group and skill."""
    titles = [g.title for g in groups]
    lookup = {_key(title): order for title, order in (skill_order or {}).items()}

    result_order: Dict[str, List[str]] = {}
    for group in groups:
        proposed = (skill_order or {}).get(group.title) or lookup.get(_key(group.title)) or []
        result_order[group.title] = repair_order(list(proposed), [s.text for s in group.skills])

    return SkillsSortResult(group_order=repair_order(list(group_order or []), titles), skill_order=result_order)


def check_skills_sort(result: SkillsSortResult, groups: Sequence[SkillGroup]) -> ValidationReport:
    """Check that a skills ordering retains every original group and skill exactly once."""
    issues: List[str] = []
    titles = [g.title for g in groups]
    if not is_permutation(result.group_order, titles):
        issues.append(f"groupOrder must contain exactly these {len(titles)} groups: {titles}")

    for group in groups:
        originals = [s.text for s in group.skills]
        proposed = result.skill_order.get(group.title)
        if proposed is None:
            issues.append(f"skillOrder is missing group '{group.title}'")
        elif not is_permutation(proposed, originals):
            issues.append(f"skillOrder['{group.title}'] must contain exactly: {originals}")

    return _report(issues)


# ===== EXPERIENCE REWRITES =====

MIN_ACHIEVEMENT_LENGTH = 10
MIN_DESCRIPTION_LENGTH = 50
MIN_ALIAS_LENGTH = 2

_METRIC = re.compile(
    r"[$€£]?\d[\d,.]*(?:\s?(?:%|percent\b|[kKmMbB](?![a-zA-Z])|x(?![a-zA-Z])|\+))?"
)


def extract_metrics(text: str) -> List[str]:
    """Extract quantifiable tokens (numbers, percentages, money, 1M, 3x)."""
    metrics = []
    for match in _METRIC.findall(text or ""):
        token = match.rstrip(".,").replace(" ", "").lower()
        if token:
            metrics.append(token)
    return metrics


def missing_metrics(original: str, rewritten: str) -> List[str]:
    """Metrics in original that no longer appear in rewritten."""
    kept = set(extract_metrics(rewritten))
    return [m for m in extract_metrics(original) if m not in kept]


def contains_keyword(text: str, keyword: str) -> bool:
    """Case-insensitive whole-term match (handles C++, Node.js, CI/CD)."""
    keyword = (keyword or "").strip()
    if not keyword:
        return False
    pattern = r"(?<![\w])" + re.escape(keyword) + r"(?![\w])"
    return re.search(pattern, text or "", re.IGNORECASE) is not None


def unapproved_keywords(
    original: str,
    rewritten: str,
    candidates: Iterable[str],
    approved: Sequence[str],
) -> List[str]:
    """
    Candidate keywords newly introduced into rewritten without approval.

    A keyword counts as approved when it is part of any approved term for
    this achievement.
    """
    approved_lower = [a.lower() for a in approved]
    flagged = []
    for keyword in candidates:
        lowered = keyword.lower()
        if any(lowered == a or contains_keyword(a, keyword) for a in approved_lower):
            continue
        if contains_keyword(rewritten, keyword) and not contains_keyword(original, keyword):
            flagged.append(keyword)
    return flagged


def validate_achievements(original: Sequence[str], rewritten: Sequence[str]) -> ValidationReport:
    issues: List[str] = []
    if len(rewritten) != len(original):
        issues.append(f"Expected {len(original)} achievements, got {len(rewritten)}")
    for i, text in enumerate(rewritten):
        if len(text.strip()) < MIN_ACHIEVEMENT_LENGTH:
            issues.append(f"Achievement [{i}] is too short")
    return _report(issues)


def validate_description(original: str, proposed: str) -> ValidationReport:
    issues: List[str] = []
    stripped = (proposed or "").strip()
    if not stripped:
        issues.append("Description is empty")
    elif len(stripped) < MIN_DESCRIPTION_LENGTH:
        issues.append(f"Description is shorter than {MIN_DESCRIPTION_LENGTH} characters")
    elif _key(stripped) == _key(original):
        issues.append("Description is identical to the original")
    return _report(issues)


def _compact(text: str) -> str:
    return re.sub(r"[^a-z0-9+#]", "", text.lower())


def validate_tech_stack(original: Sequence[str], proposed: Sequence[str]) -> ValidationReport:
    """
    Check a proposed tech stack against the original.

    Every proposed item must be a variant (alias or recasing) of an original
    item, and the list may at most double in length.
    """
    issues: List[str] = []
    if original and not proposed:
        issues.append("Proposed tech stack is empty")
    if len(proposed) > 2 * len(original):
        issues.append(f"Proposed tech stack has {len(proposed)} items (max {2 * len(original)})")

    compact_originals = [_compact(o) for o in original]
    for item in proposed:
        compact = _compact(item)
        if len(compact) < MIN_ALIAS_LENGTH:
            matched = compact in compact_originals
        else:
            matched = any(compact == o or compact in o or o in compact for o in compact_originals if o)
        if not compact or not matched:
            issues.append(f"'{item}' is not a variant of any original technology")

    return _report(issues)


def find_gating_violations(
    original: Sequence[str],
    rewritten: Sequence[str],
    candidates: Sequence[str],
    enrichment_map: EnrichmentMap,
) -> Dict[int, List[str]]:
    """Per achievement index, keywords injected without approval."""
    violations: Dict[int, List[str]] = {}
    for i, (before, after) in enumerate(zip(original, rewritten)):
        flagged = unapproved_keywords(before, after, candidates, enrichment_map.get(str(i), []))
        if flagged:
            violations[i] = flagged
    return violations
