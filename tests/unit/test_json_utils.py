"""
Unit tests for resume_tailor/common/json_utils.py

Tests structured output extraction for LLM responses including:
- Valid JSON parsing
- Markdown code block extraction
- json-repair fallback (single quotes, trailing commas)
- Arrays vs. objects
- ParseResult success/failure and pydantic contract validation
"""

import pytest

from resume_tailor.common.errors import ContractError
from resume_tailor.common.json_utils import (
    ParseResult,
    _extract_json_object,
    _strip_markdown_blocks,
    extract_json_array,
    extract_json_object,
    extract_structured,
    parse_llm_json,
    parse_llm_json_array,
)
from resume_tailor.graphs.contracts import KeywordExtractionPayload, SkillsSortPayload


# ===== TESTS: Valid JSON Parsing =====

class TestValidJsonParsing:
    """Tests for parsing valid, well-formed JSON."""

    def test_parses_simple_json(self):
        """Should parse simple valid JSON."""
        assert parse_llm_json('{"key": "value"}') == {"key": "value"}

    def test_parses_nested_json(self):
        """Should parse nested JSON structures."""
        result = parse_llm_json('{"groupOrder": ["A"], "skillOrder": {"A": ["x", "y"]}}')
        assert result["skillOrder"]["A"] == ["x", "y"]

    def test_unwraps_single_object_list(self):
        """Should unwrap an object wrapped in brackets."""
        assert parse_llm_json('[{"rankedIndices": [1, 0]}]') == {"rankedIndices": [1, 0]}


# ===== TESTS: Markdown and Surrounding Text =====

class TestMarkdownExtraction:
    """Tests for JSON wrapped in markdown or prose."""

    def test_strips_json_fence(self):
        """Should remove ```json fences."""
        assert _strip_markdown_blocks('```json\n{"a": 1}\n```') == '{"a": 1}'

    def test_strips_fence_inside_prose(self):
        """Should find a fenced block embedded in prose."""
        text = 'Here is the ordering:\n```\n{"a": 1}\n```\nLet me know.'
        assert parse_llm_json(text) == {"a": 1}

    def test_extracts_object_from_surrounding_text(self):
        """Should pull the object out of surrounding prose."""
        assert _extract_json_object('Sure! {"a": 1} Done.') == '{"a": 1}'

    def test_no_object_raises(self):
        """Should raise ValueError when there is no object at all."""
        with pytest.raises(ValueError):
            _extract_json_object("no json here")


# ===== TESTS: Repair =====

class TestJsonRepair:
    """Tests for the json-repair fallback."""

    def test_repairs_single_quotes_and_trailing_comma(self):
        """Should repair single quotes and trailing commas."""
        assert parse_llm_json("{'name': 'test',}") == {"name": "test"}

    def test_repairs_trailing_comma_in_array(self):
        """Should repair trailing commas in arrays."""
        assert parse_llm_json_array('["Go", "Kubernetes",]') == ["Go", "Kubernetes"]


# ===== TESTS: Arrays =====

class TestArrayParsing:
    """Tests for JSON array contracts."""

    def test_parses_array_in_prose(self):
        """Should extract an array from prose."""
        assert parse_llm_json_array('Sorted: ["Go", "Docker"]') == ["Go", "Docker"]

    def test_object_is_not_array(self):
        """Should reject an object where an array is expected."""
        with pytest.raises(ValueError):
            parse_llm_json_array('{"a": 1}')

    def test_empty_input_raises(self):
        """Should raise ValueError on empty input."""
        with pytest.raises(ValueError):
            parse_llm_json_array("   ")


# ===== TESTS: ParseResult =====

class TestParseResult:
    """Tests for the non-raising extraction helpers."""

    def test_success_result(self):
        """Should return ok=True with the value."""
        result = extract_json_object('{"a": 1}')
        assert result.ok
        assert result.value == {"a": 1}

    def test_failure_result_never_raises(self):
        """Should return ok=False instead of raising."""
        result = extract_json_array("I could not sort these, sorry.")
        assert not result.ok
        assert result.error
        assert result.value_or(["fallback"]) == ["fallback"]

    def test_unwrap_failure_raises_contract_error(self):
        """Should raise ContractError tagged with the stage on unwrap."""
        result: ParseResult = ParseResult.failure("bad", raw="garbage")
        with pytest.raises(ContractError) as exc_info:
            result.unwrap(stage="scribe")
        assert exc_info.value.stage == "scribe"
        assert exc_info.value.raw_output == "garbage"

    def test_structured_validates_aliases(self):
        """Should validate camelCase payloads into the pydantic model."""
        result = extract_structured(
            '{"groupOrder": ["Data"], "skillOrder": {"Data": ["Redis"]}}', SkillsSortPayload
        )
        assert result.ok
        assert result.value.group_order == ["Data"]
        assert result.value.skill_order == {"Data": ["Redis"]}

    def test_structured_rejects_wrong_shape(self):
        """Should fail when required fields are missing."""
        result = extract_structured('{"criticalKeywords": ["Go"]}', KeywordExtractionPayload)
        assert not result.ok
        assert "KeywordExtractionPayload" in result.error

    def test_structured_rejects_unparsable_text(self):
        """Should fail on text with no JSON."""
        assert not extract_structured("nothing useful", SkillsSortPayload).ok
