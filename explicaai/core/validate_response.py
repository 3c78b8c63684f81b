"""Response Validation — syntactic contract check and parser for model output.

Invariants:
    - is_valid_structured() is True iff a step marker and the Explicação,
      Cálculo, Resultado and RESPOSTA FINAL labels all start some line and
      RESPOSTA FINAL carries a non-empty answer
    - parse_structured() never raises; unknown lines are ignored or appended
      to the field currently being filled
    - Only the first VERIFICAÇÃO block is kept; parsing stops at RESPOSTA FINAL
    - Nothing here checks that the math is right

Design Decisions:
    - Labels tolerate markdown emphasis (**, #, >, bullets), case and missing
      accents
    - Verification is optional for validity; the step fields are not
"""

import re

from explicaai.core.explanation_types import ExplanationStep, StructuredExplanation

DEGRADED_NOTICE = (
    "[Modo simplificado: não foi possível gerar a explicação passo a passo. "
    "Resposta direta do modelo] "
)

_LEAD = r"^[ \t>#*_\-]*"
_TAIL = r"[ \t*_]*:[ \t*_]*"


def _label(body: str) -> re.Pattern:
    return re.compile(rf"{_LEAD}{body}{_TAIL}(.*)$", re.IGNORECASE | re.MULTILINE)


_STEP = re.compile(
    rf"{_LEAD}passo[ \t]+(\d+){_TAIL}(.*)$", re.IGNORECASE | re.MULTILINE,
)
_EXPLANATION = _label(r"explica[çc][ãa]o")
_CALCULATION = _label(r"c[áa]lculo")
_RESULT = _label(r"resultado")
_VERIFICATION = _label(r"verifica[çc][ãa]o")
_FINAL_ANSWER = _label(r"resposta[ \t]+final")
_ANSWER_PREFIX = re.compile(
    r"^[^\w-]*resposta(?:[ \t]+final)?[ \t*_]*:[ \t*_]*", re.IGNORECASE,
)

_REQUIRED = (_STEP, _EXPLANATION, _CALCULATION, _RESULT, _FINAL_ANSWER)

_FIELDS = (
    ("explanation", _EXPLANATION),
    ("calculation", _CALCULATION),
    ("result", _RESULT),
)


def is_valid_structured(output: str | None) -> bool:
    """True when output carries every label the parser needs and a final answer."""
    if not output:
        return False
    if not all(pattern.search(output) for pattern in _REQUIRED):
        return False
    return bool(parse_structured(output).final_answer)


def parse_structured(output: str) -> StructuredExplanation:
    """Parse labeled model output into a StructuredExplanation."""
    parser = _StepParser()
    lines = [line.strip() for line in (output or "").splitlines()]
    for index, line in enumerate(lines):
        if not line:
            continue
        final = _FINAL_ANSWER.match(line)
        if final:
            parser.flush()
            answer = final.group(1).strip() or _next_non_empty(lines, index)
            return parser.build(clean_answer(answer))
        parser.feed(line)
    parser.flush()
    return parser.build("")


def clean_answer(text: str) -> str:
    """Strip a leading "Resposta:" label and markdown emphasis."""
    cleaned = _ANSWER_PREFIX.sub("", (text or "").strip())
    return cleaned.strip().strip("*_").strip()


def build_degraded_explanation(fallback_text: str | None) -> StructuredExplanation:
    """Answer-only result for when every structured tier failed validation."""
    answer = clean_answer(fallback_text or "")
    return StructuredExplanation(
        steps=(), verification=None, final_answer=f"{DEGRADED_NOTICE}{answer}".strip(),
    )


def _next_non_empty(lines: list[str], index: int) -> str:
    for line in lines[index + 1:]:
        if line:
            return line
    return ""


class _StepParser:
    """Accumulates steps line by line. Internal to parse_structured."""

    def __init__(self):
        self.steps: list[ExplanationStep] = []
        self.verification: ExplanationStep | None = None
        self._current: dict | None = None
        self._field: str | None = None
        self._in_verification = False
        self._seen_verification = False

    def feed(self, line: str) -> None:
        step = _STEP.match(line)
        if step:
            self.flush()
            self._current = {"title": step.group(2).strip() or f"Passo {step.group(1)}"}
            return

        verification = _VERIFICATION.match(line)
        if verification:
            if self._seen_verification:
                # Later blocks are skipped until the next step marker
                self.flush()
                return
            self.flush()
            self._current = {"title": "Verificação"}
            self._in_verification = True
            self._seen_verification = True
            inline = verification.group(1).strip()
            if inline:
                self._current["explanation"] = inline
                self._field = "explanation"
            return

        if self._current is None:
            return

        for name, pattern in _FIELDS:
            field = pattern.match(line)
            if field:
                self._current[name] = field.group(1).strip()
                self._field = name
                return

        # Unlabeled line: continues the last field, or opens the explanation
        name = self._field or "explanation"
        previous = self._current.get(name, "")
        self._current[name] = f"{previous} {line}".strip()
        self._field = name

    def flush(self) -> None:
        if self._current is None:
            return
        step = ExplanationStep(**self._current)
        if self._in_verification:
            self.verification = step
        else:
            self.steps.append(step)
        self._current = None
        self._field = None
        self._in_verification = False

    def build(self, final_answer: str) -> StructuredExplanation:
        return StructuredExplanation(
            steps=tuple(self.steps),
            verification=self.verification,
            final_answer=final_answer,
        )
