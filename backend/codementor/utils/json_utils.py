"""
JSON utilities for parsing and validating LLM output.

Models wrap JSON in markdown fences, leave trailing commas, or stop before the
closing brace. These helpers locate the JSON payload, apply a few
conservative repairs, and validate the result against a JSON schema.
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import ValidationError, validate

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*(.*?)```", re.DOTALL | re.IGNORECASE)
_FENCED_ANY = re.compile(r"```[a-zA-Z]*\s*(\{.*?\})\s*```", re.DOTALL)


def extract_json_block(text: str) -> str:
    """Return the body of the first ```json fence, else the first fenced object, else the text itself."""
    match = _FENCED_JSON.search(text) or _FENCED_ANY.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def repair_json(malformed_json: str) -> Tuple[str, List[str]]:
    """Apply conservative fixes to malformed JSON. Returns the repaired text and the fixes applied."""
    fixes_applied = []
    repaired = malformed_json.strip()

    # Fix 1: Drop prose around the outermost object
    start, end = repaired.find("{"), repaired.rfind("}")
    if start != -1 and (start > 0 or start < end < len(repaired) - 1):
        repaired = repaired[start:end + 1] if end > start else repaired[start:]
        fixes_applied.append("strip_surrounding_text")

    # Fix 2: Remove trailing commas
    if re.search(r",\s*[}\]]", repaired):
        repaired = re.sub(r",(\s*[}\]])", r"\1", repaired)
        fixes_applied.append("trailing_commas")

    # Fix 3: Complete incomplete arrays, then objects
    missing_brackets = repaired.count("[") - repaired.count("]")
    if missing_brackets > 0:
        repaired += "]" * missing_brackets
        fixes_applied.append("complete_array")

    missing_braces = repaired.count("{") - repaired.count("}")
    if missing_braces > 0:
        repaired += "}" * missing_braces
        fixes_applied.append("complete_object")

    return repaired, fixes_applied


def loads_lenient(text: str) -> Optional[Any]:
    """Parse JSON, retrying once after repair. Returns None if both attempts fail."""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.debug(f"[PARSE] JSON parsing failed: {e}")

    repaired, fixes = repair_json(text)
    if not fixes:
        return None
    try:
        data = json.loads(repaired)
    except json.JSONDecodeError:
        logger.debug("[PARSE] Repair failed - still invalid JSON")
        return None
    logger.info(f"[PARSE] JSON repaired: {', '.join(fixes)}")
    return data


def validate_against_schema(data: Any, schema: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    try:
        validate(instance=data, schema=schema)
    except ValidationError as e:
        field = ".".join(str(x) for x in e.absolute_path) if e.absolute_path else "root"
        return False, f"{field}: {e.message}"
    return True, None
