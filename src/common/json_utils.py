"""
JSON Utilities for completion output parsing.

Completion replies are asked for "a single JSON object and nothing else", but
in practice they arrive wrapped in markdown fences, preceded by a sentence of
prose, followed by an explanation, or with small syntax slips (single quotes,
trailing commas, unquoted keys).

Parsing is layered: fence stripping, outermost-object extraction, strict
json.loads(), then json-repair as the last resort.
"""

import json
import re
from typing import Any, Dict, Optional

from json_repair import repair_json

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)


def parse_llm_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from a completion reply with robust error recovery.

    Args:
        text: Raw completion text that should contain one JSON object

    Returns:
        Parsed dictionary

    Raises:
        ValueError: If no JSON object can be extracted or repaired

    Example:
        >>> parse_llm_json('Here you go:\\n```json\\n{"key": "value"}\\n```')
        {'key': 'value'}
        >>> parse_llm_json("{'name': 'test',}")
        {'name': 'test'}
    """
    if not text or not text.strip():
        raise ValueError("Empty input: no JSON content to parse")

    json_str = _strip_markdown_blocks(text.strip())
    json_str = _extract_json_object(json_str)

    try:
        parsed = json.loads(json_str)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass  # Fall through to repair

    repaired = repair_json(json_str, return_objects=True)
    result = _coerce_repaired(repaired)
    if result is None:
        raise ValueError(
            f"Failed to parse or repair JSON object. "
            f"Original text (first 500 chars): {text[:500]}"
        )
    return result


def _coerce_repaired(repaired: Any) -> Optional[Dict[str, Any]]:
    """Normalize what json_repair hands back into a dict, or None."""
    if isinstance(repaired, dict):
        # json_repair turns hopeless input into {}; treat that as a failure
        return repaired or None
    if isinstance(repaired, list):
        dicts = [item for item in repaired if isinstance(item, dict)]
        if not dicts:
            return None
        if len(dicts) == 1:
            return dicts[0]
        merged: Dict[str, Any] = {}
        for item in dicts:
            merged.update(item)
        return merged
    return None


def _strip_markdown_blocks(text: str) -> str:
    """
    Return the body of the first fenced code block, if any.

    Unlike a prefix/suffix check this also finds fences that appear after
    leading prose ("Sure! ```json {...} ```").
    """
    match = _FENCE_PATTERN.search(text)
    if match:
        return match.group(1).strip()

    # Unterminated fence: drop the opening marker only
    if text.startswith("```"):
        first_newline = text.find("\n")
        return text[first_newline + 1:].strip() if first_newline != -1 else ""

    return text


def _extract_json_object(text: str) -> str:
    """
    Cut text down to the span from the first '{' to the matching '}'.

    Brace depth is tracked outside string literals so trailing commentary
    such as "Hope this helps {:}" does not extend the span. If the object
    is never closed (truncated reply) everything from the first '{' is
    returned so json-repair can try to close it.

    Raises:
        ValueError: If the text contains no '{' at all
    """
    start = text.find("{")
    if start == -1:
        raise ValueError(f"No JSON object found in text: {text[:200]}")

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    return text[start:]
