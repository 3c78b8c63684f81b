"""Complexity Detection — structural tiering of problem text for prompt selection.

Invariants:
    - Always returns a Complexity (never None, never raises)
    - COMPLEX wins over SIMPLE when both kinds of marker are present
    - Computed from the raw text, independently of the classifier

Design Decisions:
    - Instruction prefixes ("Resolva a equação: ...") are dropped by keeping
      only the text after the last colon before the SIMPLE checks
"""

import re

from explicaai.core.domain_types import Complexity

_NUMBER = r"-?\d+(?:[.,]\d+)?"

_COMPLEX_MARKERS = re.compile(
    r"\b(sen|cos|tan|tg|log|ln)\s*\("
    r"|integral|derivada|limite|∫"
    r"|matriz|determinante"
)

_SINGLE_OPERATION = re.compile(
    rf"^{_NUMBER}\s*[-+*/×÷]\s*{_NUMBER}\s*(?:=\s*\??)?$"
)

_SINGLE_VARIABLE_LINEAR = re.compile(
    rf"^-?\d*[a-z]\s*(?:[-+]\s*{_NUMBER}\s*)?=\s*{_NUMBER}$"
)


def detect_complexity(text: str) -> Complexity:
    """Classify text as SIMPLE, MEDIUM or COMPLEX from fixed heuristics."""
    normalized = (text or "").lower().strip()
    if _COMPLEX_MARKERS.search(normalized):
        return Complexity.COMPLEX

    expression = normalized.rsplit(":", 1)[-1].strip().rstrip(".?!").strip()
    if _SINGLE_OPERATION.match(expression) or _SINGLE_VARIABLE_LINEAR.match(expression):
        return Complexity.SIMPLE
    return Complexity.MEDIUM
