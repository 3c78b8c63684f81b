"""Explanation Types — immutable values produced by the generation pipeline.

Invariants:
    - All types are frozen dataclasses (no mutation after construction)
    - A degraded StructuredExplanation has no steps and a non-empty final_answer
    - ExplanationResult.was_retried is True iff more than one attempt ran
"""

from dataclasses import dataclass

from explicaai.core.domain_types import Complexity, PromptVariant


@dataclass(frozen=True)
class ExplanationStep:
    title: str
    explanation: str = ""
    calculation: str = ""
    result: str = ""


@dataclass(frozen=True)
class StructuredExplanation:
    steps: tuple[ExplanationStep, ...]
    final_answer: str
    verification: ExplanationStep | None = None

    @property
    def degraded(self) -> bool:
        return not self.steps


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling options forwarded to the model client."""
    temperature: float
    top_p: float
    top_k: int


@dataclass(frozen=True)
class ModelResponse:
    text: str
    elapsed_ms: int


@dataclass(frozen=True)
class GenerationAttempt:
    """One tier of one orchestration run."""
    variant: PromptVariant
    raw_output: str | None
    valid: bool
    elapsed_ms: int


@dataclass(frozen=True)
class ExplanationResult:
    """Payload of the Done terminal state."""
    explanation: StructuredExplanation
    attempts: tuple[GenerationAttempt, ...]
    complexity: Complexity
    degraded: bool = False

    @property
    def was_retried(self) -> bool:
        return len(self.attempts) > 1

    @property
    def elapsed_ms(self) -> int:
        return sum(a.elapsed_ms for a in self.attempts)

    @property
    def raw_output(self) -> str:
        """Text of the attempt that produced the result."""
        if not self.attempts:
            return ""
        return self.attempts[-1].raw_output or ""
