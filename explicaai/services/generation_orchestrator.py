"""Generation Orchestrator — drives the tier ladder from problem text to explanation.

Invariants:
    - Tiers run strictly in order normal → strict → fallback, one model call each
    - The cancel token is checked before every model call and again after it
      returns; once it is observed cancelled, no further call is issued, any
      output already received is dropped and ExplanationCancelled is raised
    - Transport failure (GenerationUnavailableError) ends the run immediately,
      at any tier; the ladder only reacts to format non-conformance
    - explain() never raises because of format non-conformance
    - Every tier transition goes through core/generation_ladder.next_state()

Design Decisions:
    - The orchestrator is per-request and holds no state between runs
    - Fallback tier is VALID when it yields any non-empty answer; both DONE
      after fallback and DONE_DEGRADED produce an answer-only explanation
"""

import logging
from collections.abc import Mapping

from explicaai.core.build_prompt import (
    build_answer_only_prompt, build_prompt, build_similar_prompt,
)
from explicaai.core.cancellation import CancelToken
from explicaai.core.detect_complexity import detect_complexity
from explicaai.core.domain_types import (
    Complexity,
    GenerationEvent as Event,
    GenerationState as State,
    PromptVariant,
)
from explicaai.core.errors import ErrorContext, ExplanationCancelled, GenerationUnavailableError
from explicaai.core.explanation_types import (
    ExplanationResult, GenerationAttempt, GenerationOptions,
)
from explicaai.core.generation_ladder import VARIANT_FOR_STATE, is_terminal, next_state
from explicaai.core.repository_protocols import ModelClient
from explicaai.core.validate_response import (
    build_degraded_explanation, clean_answer, is_valid_structured, parse_structured,
)

logger = logging.getLogger(__name__)

DEFAULT_TIER_OPTIONS = {
    PromptVariant.NORMAL: GenerationOptions(temperature=0.3, top_p=0.9, top_k=40),
    PromptVariant.STRICT: GenerationOptions(temperature=0.2, top_p=0.9, top_k=40),
    PromptVariant.FALLBACK: GenerationOptions(temperature=0.1, top_p=0.8, top_k=40),
}


class GenerationOrchestrator:
    """Turns problem text into a validated StructuredExplanation."""

    def __init__(
        self,
        client: ModelClient,
        options: Mapping[PromptVariant, GenerationOptions] | None = None,
    ) -> None:
        self.client = client
        self.options = {**DEFAULT_TIER_OPTIONS, **(options or {})}

    async def explain(self, text: str, cancel_token: CancelToken) -> ExplanationResult:
        complexity = detect_complexity(text)
        attempts: list[GenerationAttempt] = []

        state = next_state(
            State.IDLE, Event.CANCEL if cancel_token.cancelled else Event.START,
        )
        while not is_terminal(state):
            if cancel_token.cancelled:
                state = next_state(state, Event.CANCEL)
                break
            attempt = await self._run_tier(
                VARIANT_FOR_STATE[state], text, complexity, cancel_token,
                number=len(attempts) + 1,
            )
            attempts.append(attempt)
            if cancel_token.cancelled:
                # Output that arrives after the token fired is discarded
                state = next_state(state, Event.CANCEL)
                break
            state = next_state(state, Event.VALID if attempt.valid else Event.INVALID)

        if state is State.CANCELLED:
            logger.info(
                "Explanation cancelled",
                extra={"request_id": cancel_token.request_id, "attempt": len(attempts)},
            )
            raise ExplanationCancelled(ErrorContext(request_id=cancel_token.request_id))

        return _build_result(state, attempts, complexity)

    async def similar_exercises(self, text: str, cancel_token: CancelToken) -> str:
        """Three practice exercises for the problem. Single call, no ladder."""
        cancel_token.raise_if_cancelled()
        response = await self.client.generate(
            build_similar_prompt(text),
            self.options[PromptVariant.NORMAL],
            cancel_token,
        )
        cancel_token.raise_if_cancelled()
        return response.text.strip()

    async def _run_tier(
        self,
        variant: PromptVariant,
        text: str,
        complexity: Complexity,
        cancel_token: CancelToken,
        number: int,
    ) -> GenerationAttempt:
        prompt = _prompt_for(variant, text, complexity)
        try:
            response = await self.client.generate(
                prompt, self.options[variant], cancel_token,
            )
        except GenerationUnavailableError as e:
            e.context.request_id = e.context.request_id or cancel_token.request_id
            logger.error(
                "Model transport failed, aborting explanation",
                extra={
                    "request_id": cancel_token.request_id,
                    "variant": variant.value,
                    "attempt": number,
                    "error_code": e.code,
                },
            )
            raise

        valid = _is_valid(variant, response.text)
        logger.info(
            "Generation attempt finished",
            extra={
                "request_id": cancel_token.request_id,
                "variant": variant.value,
                "attempt": number,
                "elapsed_ms": response.elapsed_ms,
                "valid": valid,
            },
        )
        return GenerationAttempt(
            variant=variant,
            raw_output=response.text,
            valid=valid,
            elapsed_ms=response.elapsed_ms,
        )


# ─── Pure helpers ────────────────────────────────────────────────

def _prompt_for(variant: PromptVariant, text: str, complexity: Complexity) -> str:
    if variant is PromptVariant.FALLBACK:
        return build_answer_only_prompt(text)
    return build_prompt(text, complexity, strict=variant is PromptVariant.STRICT)


def _is_valid(variant: PromptVariant, output: str | None) -> bool:
    if variant is PromptVariant.FALLBACK:
        return bool(clean_answer(output or ""))
    return is_valid_structured(output)


def _build_result(
    state: State, attempts: list[GenerationAttempt], complexity: Complexity,
) -> ExplanationResult:
    last = attempts[-1]
    if state is State.DONE and last.variant is not PromptVariant.FALLBACK:
        explanation = parse_structured(last.raw_output or "")
        degraded = False
    else:
        explanation = build_degraded_explanation(last.raw_output)
        degraded = True
        logger.warning(
            "Explanation degraded to answer-only",
            extra={"attempt": len(attempts), "variant": last.variant.value},
        )
    return ExplanationResult(
        explanation=explanation,
        attempts=tuple(attempts),
        complexity=complexity,
        degraded=degraded,
    )
