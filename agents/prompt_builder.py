"""Opening prompt that sets the interviewer's rules for a whole session."""
from __future__ import annotations

from textwrap import dedent
from typing import Dict, List, Sequence

from agents.types import Turn, WireRole

OPENING_TEMPLATE = dedent(
    '''\
    You are a demanding but fair senior engineer at a top tech company. Your goal is to conduct a rigorous technical interview and find the limits of the user's knowledge.

    RULES:
    1.  Engage in a dialogue. Do NOT lecture.
    2.  Ask only ONE open-ended question at a time.
    3.  NEVER summarize the user's answer and say "Thanks" or "Good." Instead, ask a follow-up question.
    4.  Your response MUST ALWAYS end with a single, specific, probing question.
    5.  Do NOT solve the problem or reveal the answer. Ask, don't tell.

    Here is the problem and the user's solution:
    PROBLEM: """{problem}"""
    SOLUTION: """{code}"""

    INTERVIEW FLOW:
    1.  Start by asking the user for a high-level explanation of their approach.
    2.  After their explanation, your NEXT question MUST be about the Time and Space Complexity of their solution.
    3.  Then, probe them on potential edge cases they might have missed.
    4.  Finally, ask them about alternative solutions and the trade-offs involved.

    Begin the interview now.'''
)

_WIRE_ROLE: Dict[str, WireRole] = {
    "candidate": "user",
    "interviewer": "model",
}


def build_opening_prompt(problem: str, code: str) -> str:
    """Embed the problem and solution into the interviewer's standing instructions."""

    return OPENING_TEMPLATE.format(problem=problem, code=code)


def to_request_history(prompt: str, transcript: Sequence[Turn]) -> List[Dict[str, str]]:
    """Prefix the transcript with the opening prompt, tagged as the human side."""

    history: List[Dict[str, str]] = [{"role": "user", "text": prompt}]
    for turn in transcript:
        history.append({"role": _WIRE_ROLE[turn.role], "text": turn.text})
    return history


__all__ = ["OPENING_TEMPLATE", "build_opening_prompt", "to_request_history"]
