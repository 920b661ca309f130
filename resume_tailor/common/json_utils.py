"""
Structured output extraction for LLM responses.

This module is the single place where JSON is pulled out of free-form LLM
text. LLM outputs may wrap JSON in markdown fences, surround it with prose,
or emit malformed JSON (single quotes, trailing commas, unquoted keys).
Standard json.loads() is tried first and json-repair is used as a fallback.

JSON-contract stages use the ParseResult helpers (extract_json_object,
extract_json_array, extract_structured) which never raise; call sites decide
their own fallback. parse_llm_json / parse_llm_json_array raise ValueError
for callers that prefer exceptions.

Usage:
    result = extract_structured(text, SkillsSortPayload, stage="scribe")
    if not result.ok:
        ...fallback...
    payload = result.value
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

from json_repair import repair_json
from pydantic import BaseModel, ValidationError

from resume_tailor.common.errors import ContractError

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


@dataclass
class ParseResult(Generic[T]):
    """
    Success/failure result of a structured output extraction.

    Attributes:
        ok: True if the value was extracted and validated
        value: Extracted value (None on failure)
        error: Failure description (None on success)
        raw: The raw text that was parsed
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    raw: str = ""

    @classmethod
    def success(cls, value: T, raw: str = "") -> "ParseResult[T]":
        return cls(ok=True, value=value, raw=raw)

    @classmethod
    def failure(cls, error: str, raw: str = "") -> "ParseResult[T]":
        return cls(ok=False, error=error, raw=raw)

    def unwrap(self, stage: str = "") -> T:
        """Return the value or raise ContractError for the given stage."""
        if not self.ok:
            raise ContractError(self.error or "structured output failure", stage=stage, raw_output=self.raw)
        return self.value  # type: ignore[return-value]

    def value_or(self, fallback: T) -> T:
        return self.value if self.ok else fallback  # type: ignore[return-value]


def parse_llm_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from LLM response with robust error recovery.

    Handles common LLM output issues:
    - Markdown code blocks (```json ... ```)
    - JSON embedded in surrounding text
    - Single quotes instead of double quotes
    - Trailing commas
    - Unquoted keys

    Args:
        text: Raw LLM response text that may contain JSON

    Returns:
        Parsed dictionary from the JSON

    Raises:
        ValueError: If no valid JSON object can be extracted or repaired

    Example:
        >>> parse_llm_json('```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
        >>> parse_llm_json("{'name': 'test',}")
        {'name': 'test'}
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    json_str = _extract_json_object(_strip_markdown_blocks(text.strip()))

    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError:
        parsed = _repair(json_str, text)

    if isinstance(parsed, list):
        # LLM sometimes wraps the object in brackets: [{...}]
        if len(parsed) == 1 and isinstance(parsed[0], dict):
            return parsed[0]
        raise ValueError(f"Expected JSON object, got list: {str(parsed)[:200]}")
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected JSON object, got {type(parsed).__name__}")
    return parsed


def parse_llm_json_array(text: str) -> List[Any]:
    """
    Parse a JSON array from LLM response with robust error recovery.

    Same recovery steps as parse_llm_json, but for outputs whose contract is
    a bare list (e.g. a sorted tech stack).

    Raises:
        ValueError: If no valid JSON array can be extracted or repaired
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    json_str = _extract_json_array(_strip_markdown_blocks(text.strip()))

    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError:
        parsed = _repair(json_str, text)

    if not isinstance(parsed, list):
        raise ValueError(f"Expected JSON array, got {type(parsed).__name__}")
    return parsed


def extract_json_object(text: str) -> ParseResult[Dict[str, Any]]:
    """Extract a JSON object, returning a ParseResult instead of raising."""
    try:
        return ParseResult.success(parse_llm_json(text), raw=text or "")
    except ValueError as e:
        return ParseResult.failure(str(e), raw=text or "")


def extract_json_array(text: str) -> ParseResult[List[Any]]:
    """Extract a JSON array, returning a ParseResult instead of raising."""
    try:
        return ParseResult.success(parse_llm_json_array(text), raw=text or "")
    except ValueError as e:
        return ParseResult.failure(str(e), raw=text or "")


def extract_structured(text: str, model: Type[ModelT]) -> ParseResult[ModelT]:
    """
    Extract a JSON object and validate it against a pydantic model.

    Args:
        text: Raw LLM response text
        model: Pydantic model describing the contract

    Returns:
        ParseResult holding the validated model instance
    """
    extracted = extract_json_object(text)
    if not extracted.ok:
        return ParseResult.failure(extracted.error or "", raw=extracted.raw)

    try:
        return ParseResult.success(model.model_validate(extracted.value), raw=extracted.raw)
    except ValidationError as e:
        return ParseResult.failure(
            f"{model.__name__} validation failed: {e.error_count()} error(s)",
            raw=extracted.raw,
        )


def _repair(json_str: str, original: str) -> Any:
    """Run json-repair on a candidate JSON string."""
    try:
        repaired = repair_json(json_str, return_objects=True)
    except Exception as e:
        raise ValueError(
            f"Failed to parse or repair JSON: {e}\n"
            f"Original text (first 500 chars): {original[:500]}"
        ) from e

    # repair_json returns "" when nothing could be salvaged
    if repaired == "" or repaired is None:
        raise ValueError(f"Failed to repair JSON. Original text (first 500 chars): {original[:500]}")
    if isinstance(repaired, str):
        try:
            return json.loads(repaired)
        except json.JSONDecodeError as e:
            raise ValueError(f"json_repair returned unparsable string: {repaired[:200]}") from e
    return repaired


def _strip_markdown_blocks(text: str) -> str:
    """
    Remove markdown code block wrappers from text.

    Handles:
    - ```json ... ```
    - ``` ... ```
    - A fenced block embedded in surrounding prose

    Args:
        text: Text that may contain markdown code blocks

    Returns:
        Text with code block markers removed
    """
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()

    result = text
    if result.startswith("```json"):
        result = result[7:]
    elif result.startswith("```"):
        result = result[3:]
    if result.endswith("```"):
        result = result[:-3]

    return result.strip()


def _extract_json_object(text: str) -> str:
    """
    Extract JSON object from text that may contain surrounding content.

    Raises:
        ValueError: If no JSON object pattern is found
    """
    text = text.strip()
    if text.startswith("{"):
        return text

    # Content between first { and last }
    json_match = re.search(r"\{.*\}", text, re.DOTALL)
    if json_match:
        return json_match.group(0)

    raise ValueError(f"No JSON object found in text: {text[:200]}")


def _extract_json_array(text: str) -> str:
    """
    Extract JSON array from text that may contain surrounding content.

    Raises:
        ValueError: If no JSON array pattern is found
    """
    text = text.strip()
    if text.startswith("["):
        return text

    json_match = re.search(r"\[.*\]", text, re.DOTALL)
    if json_match:
        return json_match.group(0)

    raise ValueError(f"No JSON array found in text: {text[:200]}")
