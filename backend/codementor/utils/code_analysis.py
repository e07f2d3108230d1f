"""
Static checks on submitted code, no model involved.

Both functions are coarse pattern heuristics aimed at Java: they catch
obvious slips before a full evaluation and give a rough complexity guess.
"""
import re
from typing import List

from codementor.domain.models import ComplexityEstimate, SyntaxCheckResult, SyntaxIssue

_NESTED_FOR = re.compile(r"\bfor\s*\(.*\bfor\s*\(", re.DOTALL)
_NESTED_WHILE = re.compile(r"\bwhile\s*\(.*\bwhile\s*\(", re.DOTALL)
_METHOD_BODY = re.compile(r"\b(\w+)\s*\([^)]*\)\s*\{([^}]*)", re.DOTALL)
_CONTROL_KEYWORDS = {"for", "while", "if", "switch", "catch", "synchronized"}


def check_syntax(code: str, language: str = "java") -> SyntaxCheckResult:
    issues: List[SyntaxIssue] = []

    if language.lower() == "java":
        brace_count = 0
        paren_count = 0

        for number, line in enumerate(code.split("\n"), start=1):
            brace_count += line.count("{") - line.count("}")
            paren_count += line.count("(") - line.count(")")

            if ";;" in line and not re.search(r"\bfor\s*\(", line):
                issues.append(SyntaxIssue(line=number, message="Double semicolon detected"))

            if line.count('"') % 2 != 0 and not line.strip().startswith("//"):
                issues.append(SyntaxIssue(line=number, message="Unclosed string literal"))

        if brace_count != 0:
            issues.append(SyntaxIssue(message=f"Unbalanced braces: {'missing }' if brace_count > 0 else 'extra }'}"))
        if paren_count != 0:
            issues.append(SyntaxIssue(message=f"Unbalanced parentheses: {'missing )' if paren_count > 0 else 'extra )'}"))

        if "class " not in code and "public " not in code:
            issues.append(SyntaxIssue(message="No class or method definition found"))

    return SyntaxCheckResult(language=language, valid=not issues, issues=issues)


def _has_recursion(code: str) -> bool:
    for match in _METHOD_BODY.finditer(code):
        name, body = match.group(1), match.group(2)
        if name in _CONTROL_KEYWORDS:
            continue
        if re.search(rf"\b{re.escape(name)}\s*\(", body):
            return True
    return False


def estimate_complexity(code: str) -> ComplexityEstimate:
    analysis = ComplexityEstimate()

    # Time
    if _NESTED_FOR.search(code):
        analysis.estimated_time = "O(n²)"
        analysis.indicators.append("Nested loops detected - likely O(n²)")

    if _NESTED_WHILE.search(code):
        analysis.estimated_time = "O(n²)"
        analysis.indicators.append("Nested while loops detected - likely O(n²)")

    if "Arrays.sort" in code or "Collections.sort" in code:
        if analysis.estimated_time in ("O(1)", "O(n)"):
            analysis.estimated_time = "O(n log n)"
        analysis.indicators.append("Sorting operation - O(n log n)")

    if _has_recursion(code):
        analysis.indicators.append("Recursion detected - complexity depends on recursion depth")
        analysis.confidence = "low"

    # Space
    if any(token in code for token in ("new int[", "new Integer[", "new ArrayList")):
        analysis.estimated_space = "O(n)"
        analysis.indicators.append("Array/List allocation detected")

    if "HashMap" in code or "HashSet" in code:
        analysis.estimated_space = "O(n)"
        analysis.indicators.append("Hash structure detected - O(n) space")

    if re.search(r"new\s+\w+\[\w+\]\[\w+\]", code):
        analysis.estimated_space = "O(n²)"
        analysis.indicators.append("2D array detected - O(n²) space")

    return analysis
