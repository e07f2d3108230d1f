from codementor.core.prompt_templates import (
    ANALYSIS_CUE,
    CODE_EVALUATION_PROMPT,
    INTERVIEW_MODE_PROMPT,
    SYSTEM_PROMPT,
    build_analysis_prompt,
    build_evaluation_prompt,
    build_interview_prompt,
)
from codementor.core.state_transitions import InterviewPhase, get_phase_instructions


PROBLEM = "Given an array, find two numbers that sum to a target."


def test_analysis_prompt_without_context():
    prompt = build_analysis_prompt(PROBLEM)
    assert prompt.startswith(SYSTEM_PROMPT)
    assert "SIMILAR PROBLEMS FOR REFERENCE" not in prompt
    assert prompt.endswith(f"## USER'S PROBLEM\n\n{PROBLEM}\n\n{ANALYSIS_CUE}")


def test_analysis_prompt_with_context():
    prompt = build_analysis_prompt(PROBLEM, "### Two Sum (Easy)")
    assert "## SIMILAR PROBLEMS FOR REFERENCE" in prompt
    assert "### Two Sum (Easy)" in prompt
    assert prompt.index("### Two Sum (Easy)") < prompt.index(PROBLEM)


def test_analysis_template_lists_eleven_sections():
    for number in range(1, 12):
        assert f"### {number}. " in SYSTEM_PROMPT
    assert "DRY RUN EXAMPLE" in SYSTEM_PROMPT


def test_interview_prompt_marks_reference_as_hidden():
    prompt = build_interview_prompt(PROBLEM, "Similar: Two Sum - Tags: array", InterviewPhase.APPROACH)
    assert prompt.startswith(INTERVIEW_MODE_PROMPT)
    assert "## REFERENCE (DO NOT REVEAL TO CANDIDATE)\nSimilar: Two Sum - Tags: array" in prompt
    assert get_phase_instructions(InterviewPhase.APPROACH) in prompt
    assert prompt.rstrip().endswith(f"## PROBLEM\n{PROBLEM}")


def test_interview_prompt_without_context_or_reply():
    prompt = build_interview_prompt(PROBLEM)
    assert "REFERENCE" not in prompt
    assert "CANDIDATE'S LATEST RESPONSE" not in prompt
    assert get_phase_instructions(InterviewPhase.UNDERSTANDING) in prompt


def test_interview_prompt_includes_candidate_reply():
    prompt = build_interview_prompt(PROBLEM, phase=InterviewPhase.OPTIMIZATION, candidate_response="Use a hash map")
    assert prompt.endswith("## CANDIDATE'S LATEST RESPONSE\nUse a hash map")


def test_evaluation_prompt_fences_code():
    code = "class Solution { }"
    prompt = build_evaluation_prompt(PROBLEM, code)
    assert prompt.startswith(CODE_EVALUATION_PROMPT)
    assert f"## PROBLEM STATEMENT\n{PROBLEM}" in prompt
    assert f"```java\n{code}\n```" in prompt
    assert prompt.endswith("## YOUR EVALUATION")


def test_builders_are_deterministic():
    assert build_analysis_prompt(PROBLEM, "ctx") == build_analysis_prompt(PROBLEM, "ctx")
    assert build_interview_prompt(PROBLEM, "ctx") == build_interview_prompt(PROBLEM, "ctx")
