"""
State transition management for interview sessions.

Interview sessions move through a fixed disclosure order:

    understanding -> approach -> optimization -> reveal

Each guided turn moves one step forward. Hitting the interaction cap or an
explicit reveal request jumps straight to the terminal reveal phase. The
functions here are pure; the session manager owns the mutable state.
"""
from enum import Enum
from typing import Dict, List


class InterviewPhase(str, Enum):
    UNDERSTANDING = "understanding"
    APPROACH = "approach"
    OPTIMIZATION = "optimization"
    REVEAL = "reveal"


PHASE_ORDER: List[InterviewPhase] = [
    InterviewPhase.UNDERSTANDING,
    InterviewPhase.APPROACH,
    InterviewPhase.OPTIMIZATION,
    InterviewPhase.REVEAL,
]


def allowed_transitions() -> Dict[InterviewPhase, List[InterviewPhase]]:
    """Return the allowed transitions graph for interview phases."""
    return {
        InterviewPhase.UNDERSTANDING: [InterviewPhase.APPROACH, InterviewPhase.REVEAL],
        InterviewPhase.APPROACH: [InterviewPhase.OPTIMIZATION, InterviewPhase.REVEAL],
        InterviewPhase.OPTIMIZATION: [InterviewPhase.REVEAL],
        InterviewPhase.REVEAL: [],
    }


def validate_transition(current_phase: str, target_phase: str) -> bool:
    """True if `target_phase` is a forward move from `current_phase`. Accepts enum members or values."""
    try:
        current = InterviewPhase(current_phase)
        target = InterviewPhase(target_phase)
    except ValueError:
        return False
    return target in allowed_transitions()[current]


def initial_phase() -> InterviewPhase:
    """Initial phase for a new session."""
    return InterviewPhase.UNDERSTANDING


def is_terminal(phase: InterviewPhase) -> bool:
    return phase == InterviewPhase.REVEAL


def next_phase(phase: InterviewPhase, interactions: int, max_interactions: int) -> InterviewPhase:
    """Phase after a guided turn, given the interaction count including that turn.

    - At or past the cap -> REVEAL, whatever the nominal next phase
    - Otherwise one step forward in PHASE_ORDER (REVEAL stays REVEAL)
    """
    if interactions >= max_interactions:
        return InterviewPhase.REVEAL
    position = PHASE_ORDER.index(phase)
    return PHASE_ORDER[min(position + 1, len(PHASE_ORDER) - 1)]


# ===== Phase instructions =====

PHASE_INSTRUCTIONS: Dict[InterviewPhase, str] = {
    InterviewPhase.UNDERSTANDING: """You are in the UNDERSTANDING phase of the interview.
Your goal is to help the candidate understand the problem better.

DO:
- Ask clarifying questions about input/output
- Confirm constraints and edge cases
- Encourage them to restate the problem

DO NOT:
- Reveal any solution approach
- Give away optimal algorithms
- Provide code""",
    InterviewPhase.APPROACH: """You are in the APPROACH phase of the interview.
The candidate has a basic understanding. Now guide them toward a solution.

DO:
- Ask what data structures they might use
- Give subtle hints about patterns
- Encourage them to think about brute force first

DO NOT:
- Name the exact algorithm
- Provide code
- Skip to optimization""",
    InterviewPhase.OPTIMIZATION: """You are in the OPTIMIZATION phase of the interview.
The candidate has an approach. Help them optimize it.

DO:
- Ask about time/space complexity
- Hint at bottlenecks
- Suggest they consider alternative data structures

DO NOT:
- Give the complete optimized solution
- Provide full code""",
    InterviewPhase.REVEAL: """You are in the REVEAL phase.
Now provide the complete, comprehensive solution analysis.

Include ALL sections:
- Problem understanding
- Brute force approach
- Optimized approach
- Time complexity
- Space complexity
- Edge cases
- Java code
- Dry run
- Follow-up questions
- Common mistakes
- Variations""",
}


def get_phase_instructions(phase: InterviewPhase) -> str:
    return PHASE_INSTRUCTIONS.get(phase, PHASE_INSTRUCTIONS[InterviewPhase.REVEAL])
