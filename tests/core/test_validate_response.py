"""Response Validation — tests for the label contract, parser and answer cleanup.

Tests cover:
    - is_valid_structured accepts well-formed, markdown-decorated and accentless output
    - Each missing required label invalidates the output; verification is optional
    - parse_structured builds steps, verification and final answer
    - Multi-line fields, first VERIFICAÇÃO only, answer on the following line
    - clean_answer and build_degraded_explanation
"""

import pytest

from explicaai.core.validate_response import (
    DEGRADED_NOTICE,
    build_degraded_explanation,
    clean_answer,
    is_valid_structured,
    parse_structured,
)

WELL_FORMED = """PASSO 1: Isolar o termo com x
Explicação: Subtraímos 5 dos dois lados da equação.
Cálculo: 2x + 5 - 5 = 13 - 5
Resultado: 2x = 8

PASSO 2: Encontrar x
Explicação: Dividimos os dois lados por 2.
Cálculo: 2x / 2 = 8 / 2
Resultado: x = 4

VERIFICAÇÃO:
Explicação: Substituímos x = 4 na equação original.
Cálculo: 2 · 4 + 5 = 13
Resultado: 13 = 13 ✓

RESPOSTA FINAL: x = 4"""

MARKDOWN = """## **PASSO 1:** Isolar x
**Explicação:** Tiramos 5 dos dois lados.
**Cálculo:** 2x = 8
**Resultado:** x = 4

**RESPOSTA FINAL:** x = 4"""

ACCENTLESS = """passo 1: isolar x
explicacao: tiramos 5
calculo: 2x = 8
resultado: x = 4
resposta final: x = 4"""


# ─── is_valid_structured ────────────────────────────────────────

@pytest.mark.parametrize("output", [WELL_FORMED, MARKDOWN, ACCENTLESS])
def test_valid_outputs(output):
    assert is_valid_structured(output)


@pytest.mark.parametrize("missing", [
    "PASSO", "Explicação:", "Cálculo:", "Resultado:", "RESPOSTA FINAL:",
])
def test_missing_required_label_is_invalid(missing):
    output = WELL_FORMED.replace(missing, "Texto")
    assert not is_valid_structured(output)


def test_verification_is_optional():
    output = WELL_FORMED.replace("VERIFICAÇÃO:", "")
    assert is_valid_structured(output)


@pytest.mark.parametrize("output", [None, "", "x = 4", "A resposta final é 4."])
def test_unstructured_output_is_invalid(output):
    assert not is_valid_structured(output)


def test_label_must_start_a_line():
    output = "Veja: PASSO 1: Explicação: Cálculo: Resultado: RESPOSTA FINAL: 4"
    assert not is_valid_structured(output)


# ─── parse_structured ───────────────────────────────────────────

def test_parse_well_formed_output():
    parsed = parse_structured(WELL_FORMED)
    assert len(parsed.steps) == 2
    first = parsed.steps[0]
    assert first.title == "Isolar o termo com x"
    assert first.explanation == "Subtraímos 5 dos dois lados da equação."
    assert first.calculation == "2x + 5 - 5 = 13 - 5"
    assert first.result == "2x = 8"
    assert parsed.verification is not None
    assert parsed.verification.result == "13 = 13 ✓"
    assert parsed.final_answer == "x = 4"
    assert not parsed.degraded


def test_parse_markdown_output():
    parsed = parse_structured(MARKDOWN)
    assert parsed.steps[0].title == "Isolar x"
    assert parsed.steps[0].explanation == "Tiramos 5 dos dois lados."
    assert parsed.verification is None
    assert parsed.final_answer == "x = 4"


def test_unlabeled_lines_continue_the_last_field():
    output = """PASSO 1: Somar
Explicação: Primeiro somamos
os dois números.
Cálculo: 2 + 2
Resultado: 4
RESPOSTA FINAL: 4"""
    step = parse_structured(output).steps[0]
    assert step.explanation == "Primeiro somamos os dois números."


def test_only_first_verification_block_is_kept():
    output = WELL_FORMED.replace(
        "RESPOSTA FINAL:", "VERIFICAÇÃO:\nExplicação: outra\n\nRESPOSTA FINAL:",
    )
    parsed = parse_structured(output)
    assert parsed.verification.explanation == "Substituímos x = 4 na equação original."


def test_final_answer_on_next_line():
    output = WELL_FORMED.replace("RESPOSTA FINAL: x = 4", "RESPOSTA FINAL:\n\nx = 4")
    assert parse_structured(output).final_answer == "x = 4"


def test_text_after_final_answer_is_ignored():
    parsed = parse_structured(WELL_FORMED + "\n\nPASSO 3: extra\nExplicação: ignorado")
    assert len(parsed.steps) == 2


def test_parse_never_raises_on_garbage():
    parsed = parse_structured("nada estruturado aqui")
    assert parsed.steps == ()
    assert parsed.final_answer == ""


# ─── clean_answer / degraded ────────────────────────────────────

@pytest.mark.parametrize("raw, expected", [
    ("Resposta: x = 4", "x = 4"),
    ("RESPOSTA FINAL: **x = 4**", "x = 4"),
    ("  x = 4  ", "x = 4"),
    ("Resposta: -3", "-3"),
    ("", ""),
])
def test_clean_answer(raw, expected):
    assert clean_answer(raw) == expected


def test_degraded_explanation_has_notice_and_answer():
    explanation = build_degraded_explanation("Resposta: 42")
    assert explanation.steps == ()
    assert explanation.verification is None
    assert explanation.final_answer == f"{DEGRADED_NOTICE}42"
    assert explanation.degraded


def test_degraded_explanation_is_never_empty():
    assert build_degraded_explanation(None).final_answer


@pytest.mark.parametrize("ending", [
    "RESPOSTA FINAL:",
    "RESPOSTA FINAL:\n\n",
    "**RESPOSTA FINAL:** **",
])
def test_empty_final_answer_is_invalid(ending):
    output = WELL_FORMED.replace("RESPOSTA FINAL: x = 4", ending)
    assert not is_valid_structured(output)
