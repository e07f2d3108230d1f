"""
Parsers for free-text model output.

`parse_analysis` turns a numbered-heading analysis into a StructuredResponse.
Each section has its own extractor (raw text -> optional value), so a missing
or mangled section only loses that field. Code is taken from the first fenced
block regardless of where the code heading ended up.

`parse_evaluation` reads the rubric JSON of a code review.

Neither function raises: malformed output degrades to defaults.
"""
import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

from codementor.domain.models import CriterionScore, EvaluationBreakdown, EvaluationRecord, StructuredResponse
from codementor.utils.json_utils import extract_json_block, loads_lenient, validate_against_schema

logger = logging.getLogger(__name__)


# ================================
# Section headings
# ================================

SECTION_TITLES: Dict[str, str] = {
    "understanding": r"PROBLEM\s+UNDERSTANDING|UNDERSTANDING(?:\s+THE\s+PROBLEM)?",
    "brute_force": r"BRUTE[\s-]*FORCE(?:\s+(?:APPROACH|SOLUTION))?",
    "optimized": r"OPTIMI[SZ]ED\s+(?:APPROACH|SOLUTION)|OPTIMAL\s+(?:APPROACH|SOLUTION)",
    "time_complexity": r"TIME\s+COMPLEXITY",
    "space_complexity": r"SPACE\s+COMPLEXITY",
    "edge_cases": r"EDGE\s+CASES?",
    "code": r"(?:JAVA\s+|CODE\s+)?IMPLEMENTATION|(?:JAVA\s+)?CODE(?:\s+SOLUTION)?",
    "dry_run": r"DRY\s+RUN(?:\s+EXAMPLE)?",
    "follow_up_questions": r"FOLLOW[\s-]*UP\s+QUESTIONS?",
    "common_mistakes": r"COMMON\s+(?:MISTAKES?|PITFALLS)",
    "variations": r"(?:PROBLEM\s+)?VARIATIONS?|RELATED\s+PROBLEMS",
}

_BOLD = r"(?:\*\*)?"
_NUMBER = r"\d{1,2}[ \t]*[.):]"


def _heading_pattern(title: str) -> "re.Pattern[str]":
    # Text after the title on a heading line is captured as the start of the body.
    # Bare numbered headings only carry text after a colon, so numbered list items
    # such as "2. Edge cases not handled" are not taken as headings.
    hashed = rf"#{{1,6}}[ \t]*{_BOLD}[ \t]*(?:{_NUMBER}[ \t]*)?{_BOLD}[ \t]*(?:{title})\b(?P<hashed_inline>[^\n]*)"
    numbered = (
        rf"{_BOLD}[ \t]*{_NUMBER}[ \t]*{_BOLD}[ \t]*(?:{title})[ \t]*{_BOLD}[ \t]*"
        rf"(?::(?P<numbered_inline>[^\n]*))?"
    )
    return re.compile(rf"^[ \t]*(?:{hashed}|{numbered})$", re.IGNORECASE | re.MULTILINE)


SECTION_PATTERNS = {name: _heading_pattern(title) for name, title in SECTION_TITLES.items()}
ANY_HEADING = _heading_pattern("|".join(SECTION_TITLES.values()))

LIST_ITEM = re.compile(r"^\s*(?:[-•*+]|\d{1,2}[.)])\s+(.*)$")
JAVA_BLOCK = re.compile(r"```java[ \t]*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
ANY_CODE_BLOCK = re.compile(r"```[\w+#.-]*[ \t]*\n(.*?)```", re.DOTALL)
LOOSE_FOLLOW_UP = re.compile(
    r"(?:interview|follow[\s-]?up|what\s+if)[^\n]*:\s*(.*?)(?=###|common|variation|$)",
    re.IGNORECASE | re.DOTALL,
)

LIST_SECTIONS = ("edge_cases", "follow_up_questions", "common_mistakes", "variations")
TEXT_SECTIONS = (
    "understanding",
    "brute_force",
    "optimized",
    "time_complexity",
    "space_complexity",
    "dry_run",
)


# ================================
# Extractors
# ================================

def _section_parts(text: str, name: str) -> Optional[Tuple[str, str]]:
    """(heading-line text, body below the heading) for section `name`, or None if absent."""
    match = SECTION_PATTERNS[name].search(text)
    if not match:
        return None
    inline = match.group("hashed_inline") or match.group("numbered_inline") or ""
    following = ANY_HEADING.search(text, match.end())
    body_end = following.start() if following else len(text)
    return inline.lstrip(" \t:*-").strip(), text[match.end():body_end].strip()


def extract_section(text: str, name: str) -> Optional[str]:
    """Body of section `name`, up to the next recognised heading. None if the heading is absent.

    Text written on the heading line itself ("4. Time Complexity: O(n)") opens the body.
    """
    parts = _section_parts(text, name)
    if parts is None:
        return None
    return "\n".join(part for part in parts if part)


def extract_list_items(block: str) -> List[str]:
    """Bullet or numbered lines of `block`, markers stripped, empties dropped."""
    items = []
    for line in block.splitlines():
        match = LIST_ITEM.match(line)
        if match:
            item = match.group(1).strip()
            if item:
                items.append(item)
    return items


def extract_list_section(text: str, name: str) -> Optional[List[str]]:
    parts = _section_parts(text, name)
    if parts is None:
        return None
    inline, body = parts
    return ([inline] if inline else []) + extract_list_items(body)


def extract_code(text: str) -> Optional[str]:
    """First ```java block, else the first fenced block of any language."""
    match = JAVA_BLOCK.search(text) or ANY_CODE_BLOCK.search(text)
    return match.group(1).strip() if match else None


def extract_follow_up_loose(text: str, limit: int = 5) -> Optional[List[str]]:
    """Looser follow-up match for replies that dropped the numbered heading."""
    match = LOOSE_FOLLOW_UP.search(text)
    if not match:
        return None
    items = extract_list_items(match.group(1))
    return items[:limit] or None


TEXT_EXTRACTORS: Dict[str, Callable[[str], Optional[str]]] = {
    name: (lambda text, _name=name: extract_section(text, _name)) for name in TEXT_SECTIONS
}


# ================================
# Analysis
# ================================

def _build_analysis(text: str) -> StructuredResponse:
    fields: Dict[str, object] = {}

    for name, extractor in TEXT_EXTRACTORS.items():
        value = extractor(text)
        if value:
            fields[name] = value

    for name in LIST_SECTIONS:
        items = extract_list_section(text, name)
        if items:
            fields[name] = items

    if "follow_up_questions" not in fields:
        loose = extract_follow_up_loose(text)
        if loose:
            fields["follow_up_questions"] = loose

    code = extract_code(text)
    if code:
        fields["code"] = code

    if not fields and text.strip():
        fields["understanding"] = text.strip()

    return StructuredResponse(**fields)


def parse_analysis(raw_text: str) -> StructuredResponse:
    """Extract the structured analysis from a model reply. Never raises."""
    text = raw_text if isinstance(raw_text, str) else ""
    try:
        return _build_analysis(text)
    except Exception as e:
        logger.error(f"[PARSE] Analysis parsing failed, returning raw text: {e}")
        return StructuredResponse(understanding=text)


# ================================
# Evaluation
# ================================

UNABLE_TO_EVALUATE = "Unable to evaluate"

_CRITERION_SCHEMA = {
    "type": "object",
    "properties": {
        "score": {"type": "number"},
        "feedback": {"type": ["string", "null"]},
    },
    "required": ["score"],
}

EVALUATION_SCHEMA = {
    "type": "object",
    "properties": {
        "score": {"type": "number", "minimum": 0, "maximum": 10},
        "breakdown": {
            "type": "object",
            "properties": {
                criterion: _CRITERION_SCHEMA
                for criterion in ("correctness", "time_complexity", "space_complexity", "code_quality", "edge_cases")
            },
        },
        "suggestions": {"type": "array", "items": {"type": "string"}},
        "optimal_solution_hint": {"type": ["string", "null"]},
    },
    "required": ["score", "breakdown"],
}


def _fill_null_text(data: Dict) -> Dict:
    """Null hint or feedback -> empty string."""
    if data.get("optimal_solution_hint") is None:
        data["optimal_solution_hint"] = ""
    for criterion in data["breakdown"].values():
        if isinstance(criterion, dict) and criterion.get("feedback") is None:
            criterion["feedback"] = ""
    return data


def default_evaluation(raw_text: str) -> EvaluationRecord:
    """Record returned when the model output can't be read as a rubric."""
    return EvaluationRecord(
        score=0,
        breakdown=EvaluationBreakdown(
            correctness=CriterionScore(feedback=UNABLE_TO_EVALUATE),
            time_complexity=CriterionScore(feedback=UNABLE_TO_EVALUATE, detected="Unknown"),
            space_complexity=CriterionScore(feedback=UNABLE_TO_EVALUATE, detected="Unknown"),
            code_quality=CriterionScore(feedback=UNABLE_TO_EVALUATE),
            edge_cases=CriterionScore(feedback=UNABLE_TO_EVALUATE, missing=[]),
        ),
        suggestions=["Unable to parse evaluation response"],
        optimal_solution_hint="",
        raw_response=raw_text,
    )


def parse_evaluation(raw_text: str) -> EvaluationRecord:
    """Read the rubric JSON from a model reply. Never raises."""
    text = raw_text if isinstance(raw_text, str) else ""
    try:
        data = loads_lenient(extract_json_block(text))
        if data is None:
            logger.warning("[PARSE] Evaluation response is not JSON")
            return default_evaluation(text)

        is_valid, error = validate_against_schema(data, EVALUATION_SCHEMA)
        if not is_valid:
            logger.warning(f"[PARSE] Evaluation JSON does not match rubric schema: {error}")
            return default_evaluation(text)

        return EvaluationRecord.model_validate(_fill_null_text(data))
    except Exception as e:
        logger.warning(f"[PARSE] Evaluation parsing failed: {e}")
        return default_evaluation(text)
