"""Lenient JSON extraction for model responses.

Models wrap JSON in code fences, leave trailing commas, or add prose around
the object. Each recovery step is tried in order until one parses.
"""

import json
import re
from typing import Any, Optional

import structlog

logger = structlog.get_logger()


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences from model output."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


def fix_llm_json(text: str) -> str:
    """Remove trailing commas before } or ]."""
    return re.sub(r",\s*([}\]])", r"\1", text)


def extract_json_object(text: str) -> Optional[str]:
    """Return the outermost ``{...}`` span, or None when there is no balanced object."""
    start = text.find("{")
    if start < 0:
        return None
    depth, in_string, escape_next = 0, False, False
    for i in range(start, len(text)):
        ch = text[i]
        if escape_next:
            escape_next = False
        elif ch == "\\":
            escape_next = True
        elif ch == '"':
            in_string = not in_string
        elif not in_string and ch == "{":
            depth += 1
        elif not in_string and ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_json_response(text: str, source: str = "llm") -> Any:
    """Parse a model response into JSON, recovering from common formatting issues.

    Raises:
        ValueError: no recovery step produced valid JSON
    """
    cleaned = strip_code_fences(text)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    try:
        result = json.loads(fix_llm_json(cleaned))
        logger.info("json_parse_recovered", source=source, method="fix_llm_json")
        return result
    except json.JSONDecodeError:
        pass

    extracted = extract_json_object(cleaned)
    if extracted:
        try:
            result = json.loads(fix_llm_json(extracted))
            logger.info("json_parse_recovered", source=source, method="extract_object")
            return result
        except json.JSONDecodeError:
            pass

    logger.error(
        "json_parse_failed",
        source=source,
        response_length=len(text),
        response_preview=cleaned[:500],
    )
    raise ValueError(f"Response is not valid JSON: {cleaned[:80]!r}")
