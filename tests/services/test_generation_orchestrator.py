"""Generation Orchestrator — tests for the normal → strict → fallback ladder.

Tests cover:
    - First valid output: one call, parsed steps, not retried
    - Invalid normal output: strict tier with stricter options
    - Fallback tier: answer-only explanation, degraded
    - Cancellation before start, between tiers and during a call
    - Transport failure aborts the ladder at any tier
    - similar_exercises() is a single call
"""

import asyncio

import pytest

from explicaai.core.cancellation import CancelToken
from explicaai.core.domain_types import Complexity, PromptVariant
from explicaai.core.errors import ExplanationCancelled, GenerationUnavailableError
from explicaai.core.explanation_types import GenerationOptions
from explicaai.core.validate_response import DEGRADED_NOTICE
from explicaai.services.generation_orchestrator import (
    DEFAULT_TIER_OPTIONS, GenerationOrchestrator,
)
from tests.services.mock_model_client import (
    FALLBACK_OUTPUT, HANG, INVALID_OUTPUT, VALID_OUTPUT, MockModelClient, cancel_then,
)

PROBLEM = "Resolva a equação: 2x + 5 = 13"


def _orchestrator(*items):
    client = MockModelClient(*items)
    return GenerationOrchestrator(client), client


# ─── Happy path ─────────────────────────────────────────────────

async def test_first_valid_output_uses_one_call():
    orchestrator, client = _orchestrator(VALID_OUTPUT)
    result = await orchestrator.explain(PROBLEM, CancelToken("r1"))

    assert len(client.calls) == 1
    assert client.calls[0].options == DEFAULT_TIER_OPTIONS[PromptVariant.NORMAL]
    assert not result.was_retried
    assert not result.degraded
    assert len(result.explanation.steps) == 2
    assert result.explanation.verification is not None
    assert result.explanation.final_answer == "x = 4"
    assert result.complexity is Complexity.SIMPLE


async def test_request_id_reaches_the_client():
    orchestrator, client = _orchestrator(VALID_OUTPUT)
    await orchestrator.explain(PROBLEM, CancelToken("req-7"))
    assert client.calls[0].request_id == "req-7"


# ─── Ladder ─────────────────────────────────────────────────────

async def test_invalid_normal_output_retries_with_strict_prompt():
    orchestrator, client = _orchestrator(INVALID_OUTPUT, VALID_OUTPUT)
    result = await orchestrator.explain(PROBLEM, CancelToken())

    assert len(client.calls) == 2
    assert "RESTRIÇÕES DE FORMATO" not in client.calls[0].prompt
    assert "RESTRIÇÕES DE FORMATO" in client.calls[1].prompt
    assert client.calls[1].options == DEFAULT_TIER_OPTIONS[PromptVariant.STRICT]
    assert result.was_retried
    assert not result.degraded
    assert [a.variant for a in result.attempts] == [
        PromptVariant.NORMAL, PromptVariant.STRICT,
    ]


async def test_fallback_returns_degraded_answer_only():
    orchestrator, client = _orchestrator(INVALID_OUTPUT, INVALID_OUTPUT, FALLBACK_OUTPUT)
    result = await orchestrator.explain(PROBLEM, CancelToken())

    assert len(client.calls) == 3
    assert client.calls[2].prompt.rstrip().endswith("RESPOSTA:")
    assert client.calls[2].options == DEFAULT_TIER_OPTIONS[PromptVariant.FALLBACK]
    assert result.was_retried
    assert result.degraded
    assert result.explanation.steps == ()
    assert result.explanation.final_answer == f"{DEGRADED_NOTICE}x = 4"


async def test_empty_fallback_still_yields_nonempty_answer():
    orchestrator, client = _orchestrator(INVALID_OUTPUT, INVALID_OUTPUT, "   ")
    result = await orchestrator.explain(PROBLEM, CancelToken())

    assert result.degraded
    assert result.explanation.final_answer
    assert len(result.attempts) == 3
    assert not result.attempts[-1].valid


async def test_never_more_than_three_calls():
    orchestrator, client = _orchestrator(
        INVALID_OUTPUT, INVALID_OUTPUT, "", VALID_OUTPUT,
    )
    await orchestrator.explain(PROBLEM, CancelToken())
    assert len(client.calls) == 3
    assert client.queue == [VALID_OUTPUT]


async def test_custom_tier_options_override_defaults():
    strict = GenerationOptions(temperature=0.0, top_p=0.5, top_k=10)
    client = MockModelClient(INVALID_OUTPUT, VALID_OUTPUT)
    orchestrator = GenerationOrchestrator(client, {PromptVariant.STRICT: strict})
    await orchestrator.explain(PROBLEM, CancelToken())
    assert client.calls[0].options == DEFAULT_TIER_OPTIONS[PromptVariant.NORMAL]
    assert client.calls[1].options == strict


async def test_elapsed_ms_sums_attempts():
    orchestrator, _ = _orchestrator(INVALID_OUTPUT, VALID_OUTPUT)
    result = await orchestrator.explain(PROBLEM, CancelToken())
    assert result.elapsed_ms == 20


# ─── Cancellation ───────────────────────────────────────────────

async def test_cancelled_before_start_makes_no_call():
    orchestrator, client = _orchestrator(VALID_OUTPUT)
    token = CancelToken("r-cancel")
    token.cancel()

    with pytest.raises(ExplanationCancelled) as exc_info:
        await orchestrator.explain(PROBLEM, token)
    assert client.calls == []
    assert exc_info.value.context.request_id == "r-cancel"


async def test_cancel_between_tiers_stops_the_ladder():
    orchestrator, client = _orchestrator(cancel_then(INVALID_OUTPUT), VALID_OUTPUT)
    with pytest.raises(ExplanationCancelled):
        await orchestrator.explain(PROBLEM, CancelToken())
    assert len(client.calls) == 1


async def test_cancel_during_call_discards_valid_output():
    orchestrator, client = _orchestrator(cancel_then(VALID_OUTPUT), VALID_OUTPUT)
    token = CancelToken("r-late")

    with pytest.raises(ExplanationCancelled) as exc_info:
        await orchestrator.explain(PROBLEM, token)
    assert len(client.calls) == 1
    assert exc_info.value.context.request_id == "r-late"


async def test_cancel_during_similar_call_discards_output():
    orchestrator, client = _orchestrator(cancel_then("Exercício 1: x + 1 = 2"))
    with pytest.raises(ExplanationCancelled):
        await orchestrator.similar_exercises(PROBLEM, CancelToken())
    assert len(client.calls) == 1


async def test_cancel_during_call_propagates():
    orchestrator, client = _orchestrator(HANG, VALID_OUTPUT)
    token = CancelToken()

    task = asyncio.create_task(orchestrator.explain(PROBLEM, token))
    await asyncio.sleep(0)
    token.cancel()
    with pytest.raises(ExplanationCancelled):
        await task
    assert len(client.calls) == 1


# ─── Transport failure ──────────────────────────────────────────

@pytest.mark.parametrize("failing_call", [0, 1, 2])
async def test_transport_failure_aborts_at_any_tier(failing_call):
    items = [INVALID_OUTPUT] * failing_call + [
        GenerationUnavailableError("boom", "connection_error"),
    ]
    orchestrator, client = _orchestrator(*items, VALID_OUTPUT)
    token = CancelToken("r-fail")

    with pytest.raises(GenerationUnavailableError) as exc_info:
        await orchestrator.explain(PROBLEM, token)
    assert len(client.calls) == failing_call + 1
    assert exc_info.value.context.request_id == "r-fail"


# ─── Similar exercises ──────────────────────────────────────────

async def test_similar_exercises_single_call():
    orchestrator, client = _orchestrator("  **Exercício 1:** 3x + 2 = 11  ")
    exercises = await orchestrator.similar_exercises(PROBLEM, CancelToken())
    assert exercises == "**Exercício 1:** 3x + 2 = 11"
    assert len(client.calls) == 1
    assert "3 exercícios similares" in client.calls[0].prompt


async def test_similar_exercises_respects_cancelled_token():
    orchestrator, client = _orchestrator("unused")
    token = CancelToken()
    token.cancel()
    with pytest.raises(ExplanationCancelled):
        await orchestrator.similar_exercises(PROBLEM, token)
    assert client.calls == []
