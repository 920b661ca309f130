"""
Unit tests for resume_tailor/graphs/validators.py

Tests the deterministic checks that back the LLM reviewers:
- JD format
- Job title markdown cleanup
- Summary skill validation
- Ordering repair (bijection guarantees)
- Metric preservation and keyword gating
- Description and tech stack checks
"""

import pytest

from resume_tailor.graphs.types import Skill, SkillGroup
from resume_tailor.graphs.validators import (
    check_skills_sort,
    contains_keyword,
    extract_metrics,
    find_gating_violations,
    is_permutation,
    missing_metrics,
    repair_indices,
    repair_order,
    repair_skills_sort,
    split_sentences,
    strip_markdown_emphasis,
    validate_achievements,
    validate_description,
    validate_jd_format,
    validate_skills_in_summary,
    validate_tech_stack,
)


# ===== TESTS: JD Format =====

class TestValidateJdFormat:
    """Tests for the four-section JD format check."""

    def test_valid_jd(self, refined_jd):
        """Should accept a well-formed refined JD."""
        report = validate_jd_format(refined_jd)
        assert report.valid, report.issues
        assert report.render().startswith("PASSED")

    def test_missing_section(self, refined_jd):
        """Should flag a missing section."""
        report = validate_jd_format(refined_jd.replace("# required-skills", "# skills"))
        assert not report.valid
        assert any("required-skills" in issue for issue in report.issues)

    def test_bold_markdown(self, refined_jd):
        """Should flag bold markdown."""
        report = validate_jd_format(refined_jd.replace("Design gRPC", "**Design** gRPC"))
        assert any("Bold" in issue for issue in report.issues)

    def test_star_bullets(self, refined_jd):
        """Should flag '*' list items."""
        report = validate_jd_format(refined_jd.replace("- Go\n", "* Go\n"))
        assert not report.valid

    def test_too_many_items(self, refined_jd):
        """Should flag more than 5 items in a bounded section."""
        extra = "".join(f"- Responsibility {i}\n" for i in range(6))
        jd = refined_jd.replace("# core-responsibilities\n", "# core-responsibilities\n" + extra)
        report = validate_jd_format(jd)
        assert any("core-responsibilities" in issue and "max 5" in issue for issue in report.issues)


# ===== TESTS: Job Title Cleanup =====

class TestStripMarkdownEmphasis:
    """Tests for unconditional title cleanup."""

    @pytest.mark.parametrize("raw,expected", [
        ("**Senior Backend Engineer**", "Senior Backend Engineer"),
        ("*Staff Engineer*", "Staff Engineer"),
        ("_Platform Engineer_", "Platform Engineer"),
        ("~~Lead~~ Engineer", "Lead Engineer"),
        ("`Data Engineer`", "Data Engineer"),
        ('"Backend Engineer"', "Backend Engineer"),
    ])
    def test_strips_emphasis(self, raw, expected):
        """Should remove emphasis markers and quotes."""
        assert strip_markdown_emphasis(raw) == expected

    def test_keeps_underscores_inside_words(self):
        """Should not mangle identifiers with inner underscores."""
        assert strip_markdown_emphasis("snake_case Engineer") == "snake_case Engineer"


# ===== TESTS: Summary Skills =====

class TestValidateSkillsInSummary:
    """Tests for the allowed-skill check."""

    def test_allowed_skills_pass(self):
        """Should accept technologies from the allowed list."""
        summary = "Backend engineer with 8+ years of experience. Builds services with Python and PostgreSQL."
        result = validate_skills_in_summary(summary, ["Python", "PostgreSQL"])
        assert result.valid, result.violations

    def test_unknown_technology_flagged(self):
        """Should flag a technology not in the allowed list."""
        summary = "Backend engineer. Deploys workloads on Kubernetes and AWS."
        result = validate_skills_in_summary(summary, ["Python"])
        assert "Kubernetes" in result.violations
        assert "AWS" in result.violations

    def test_substring_match_allowed(self):
        """Should allow tokens contained in an allowed skill."""
        result = validate_skills_in_summary("Works daily with React.", ["React Native"])
        assert result.valid

    def test_dotted_names(self):
        """Should check dotted names like Node.js."""
        result = validate_skills_in_summary("Builds APIs in node.js every day.", ["Go"])
        assert "node.js" in result.violations

    def test_ignored_words(self):
        """Should ignore common resume words like Senior and Production."""
        result = validate_skills_in_summary("A Senior engineer running Production systems.", [])
        assert result.valid

    def test_sentence_count(self):
        """Should count sentences without splitting Node.js."""
        assert len(split_sentences("Uses Node.js daily. Ships fast. Leads teams. Mentors juniors.")) == 4


# ===== TESTS: Orderings =====

class TestRepairOrder:
    """Tests for bijection repair of string orderings."""

    def test_valid_order_kept(self):
        """Should keep a valid permutation as-is."""
        assert repair_order(["b", "a", "c"], ["a", "b", "c"]) == ["b", "a", "c"]

    def test_drops_unknown_and_duplicates_and_appends_missing(self):
        """Should drop unknown/duplicate items and append missing ones."""
        result = repair_order(["c", "c", "zzz", "A"], ["a", "b", "c"])
        assert result == ["c", "a", "b"]
        assert is_permutation(result, ["a", "b", "c"])

    def test_restores_original_casing(self):
        """Should map case-insensitive matches back to original text."""
        assert repair_order(["postgresql", "GO"], ["Go", "PostgreSQL"]) == ["PostgreSQL", "Go"]

    def test_handles_duplicate_originals(self):
        """Should keep duplicate originals the right number of times."""
        assert sorted(repair_order(["x"], ["x", "x", "y"])) == ["x", "x", "y"]

    def test_ignores_non_strings(self):
        """Should skip non-string items."""
        assert repair_order([1, None, "b"], ["a", "b"]) == ["b", "a"]


class TestRepairIndices:
    """Tests for bijection repair of index rankings."""

    @pytest.mark.parametrize("proposed", [
        [2, 0, 1],
        [2, 2, 0],
        [5, -1, 1],
        ["1", "x", 0],
        [],
        [True, 1],
    ])
    def test_always_a_permutation(self, proposed):
        """Should always return each index exactly once."""
        result = repair_indices(proposed, 3)
        assert sorted(result) == [0, 1, 2]

    def test_keeps_valid_prefix_order(self):
        """Should keep the proposed order for valid indices."""
        assert repair_indices([2, 2, 0], 3) == [2, 0, 1]


class TestSkillsSortChecks:
    """Tests for skills sort validation and repair."""

    @pytest.fixture
    def groups(self):
        return [
            SkillGroup("Languages", [Skill("Python"), Skill("Go")]),
            SkillGroup("Data", [Skill("PostgreSQL"), Skill("Redis")]),
        ]

    def test_check_accepts_complete_order(self, groups):
        """Should accept an ordering retaining every group and skill."""
        from resume_tailor.graphs.types import SkillsSortResult
        result = SkillsSortResult(["Data", "Languages"], {"Data": ["Redis", "PostgreSQL"], "Languages": ["Go", "Python"]})
        assert check_skills_sort(result, groups).valid

    def test_check_flags_lost_skill(self, groups):
        """Should flag a dropped skill."""
        from resume_tailor.graphs.types import SkillsSortResult
        result = SkillsSortResult(["Data", "Languages"], {"Data": ["Redis"], "Languages": ["Go", "Python"]})
        report = check_skills_sort(result, groups)
        assert not report.valid
        assert "Data" in report.issues[0]

    def test_repair_is_bijection(self, groups):
        """Should repair a lossy proposal into a full bijection."""
        result = repair_skills_sort(["data", "Unknown"], {"Data": ["Redis", "Redis", "MongoDB"]}, groups)
        assert result.group_order == ["Data", "Languages"]
        assert result.skill_order["Data"] == ["Redis", "PostgreSQL"]
        assert result.skill_order["Languages"] == ["Python", "Go"]
        assert check_skills_sort(result, groups).valid


# ===== TESTS: Metrics and Keyword Gating =====

class TestMetrics:
    """Tests for metric preservation."""

    def test_extracts_common_metrics(self):
        """Should extract counts, percentages, money, and multipliers."""
        metrics = extract_metrics("Cut costs by $1.2M (35%) and served 1M requests/day 3x faster.")
        assert "$1.2m" in metrics
        assert "35%" in metrics
        assert "1m" in metrics
        assert "3x" in metrics

    def test_missing_metric_detected(self):
        """Should detect a changed percentage."""
        assert missing_metrics("Reduced latency by 40%", "Reduced latency by 45%") == ["40%"]

    def test_preserved_metrics(self):
        """Should accept a rewrite that keeps every metric."""
        assert missing_metrics(
            "Built REST API serving 1M requests/day",
            "Designed a Go REST API serving 1M requests/day",
        ) == []


class TestKeywordGating:
    """Tests for enrichment-map keyword gating."""

    def test_contains_keyword_word_boundaries(self):
        """Should match whole terms case-insensitively, including C++."""
        assert contains_keyword("Wrote services in C++ and Go", "c++")
        assert not contains_keyword("Used Golang", "Go")

    def test_unapproved_injection_flagged(self):
        """Should flag a keyword introduced without approval."""
        violations = find_gating_violations(
            ["Built REST API serving 1M requests/day"],
            ["Built REST API on Kubernetes serving 1M requests/day"],
            ["Kubernetes", "gRPC"],
            {"0": []},
        )
        assert violations == {0: ["Kubernetes"]}

    def test_approved_injection_allowed(self):
        """Should allow a keyword approved for that index."""
        violations = find_gating_violations(
            ["Built REST API serving 1M requests/day"],
            ["Built REST API in Go serving 1M requests/day"],
            ["Go", "Kubernetes"],
            {"0": ["Go"]},
        )
        assert violations == {}

    def test_keyword_already_in_original_allowed(self):
        """Should not flag keywords that were already present."""
        violations = find_gating_violations(
            ["Ran Kubernetes clusters"], ["Operated Kubernetes clusters"], ["Kubernetes"], {"0": []}
        )
        assert violations == {}


# ===== TESTS: Rewrite Checks =====

class TestRewriteChecks:
    """Tests for achievement, description, and tech stack checks."""

    def test_achievement_count_mismatch(self):
        """Should flag a changed achievement count."""
        report = validate_achievements(["Built an API for partners", "Led a team of five"], ["Built an API for partners"])
        assert not report.valid

    def test_short_achievement(self):
        """Should flag achievements shorter than 10 characters."""
        report = validate_achievements(["Built an API for partners"], ["API"])
        assert any("too short" in issue for issue in report.issues)

    @pytest.mark.parametrize("proposed,issue", [
        ("", "empty"),
        ("Built APIs.", "shorter"),
        ("Built and operated public APIs for the commerce platform.", "identical"),
    ])
    def test_description_issues(self, proposed, issue):
        """Should reject empty, short, or unchanged descriptions."""
        report = validate_description("Built and operated public APIs for the commerce platform.", proposed)
        assert not report.valid
        assert issue in report.issues[0]

    def test_tech_stack_variants_allowed(self):
        """Should accept recased and substring variants of originals."""
        assert validate_tech_stack(["PostgreSQL", "Go"], ["postgresql", "Golang"]).valid

    def test_tech_stack_unrelated_alias_rejected(self):
        """Should reject aliases that share no spelling with the original."""
        assert not validate_tech_stack(["Kubernetes"], ["K8s"]).valid

    def test_tech_stack_addition_rejected(self):
        """Should reject technologies that are not in the original list."""
        report = validate_tech_stack(["Go"], ["Go", "Kubernetes"])
        assert any("Kubernetes" in issue for issue in report.issues)

    def test_tech_stack_single_letter_addition_rejected(self):
        """Should not accept one-letter names hidden inside an original item."""
        report = validate_tech_stack(["Docker", "PostgreSQL"], ["Docker", "PostgreSQL", "C", "R"])
        assert not report.valid
        assert any("'C'" in issue for issue in report.issues)
        assert any("'R'" in issue for issue in report.issues)

    def test_tech_stack_single_letter_original_kept(self):
        """Should accept a one-letter technology that was already listed."""
        assert validate_tech_stack(["R", "Python"], ["r", "Python"]).valid

    def test_tech_stack_length_bound(self):
        """Should reject lists more than twice the original length."""
        report = validate_tech_stack(["Go"], ["Go", "go", "GO"])
        assert any("max 2" in issue for issue in report.issues)
