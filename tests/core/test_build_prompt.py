"""Prompt Builder — tests for tiered pt-BR prompt templates."""

import pytest

from explicaai.core.build_prompt import (
    LABEL_VOCABULARY,
    build_answer_only_prompt,
    build_prompt,
    build_similar_prompt,
)
from explicaai.core.domain_types import Complexity

PROBLEM = "Resolva a equação: 2x + 5 = 13"


@pytest.mark.parametrize("complexity", list(Complexity))
def test_every_tier_names_every_label(complexity):
    prompt = build_prompt(PROBLEM, complexity)
    for label in LABEL_VOCABULARY:
        assert label in prompt


@pytest.mark.parametrize("complexity", list(Complexity))
def test_problem_is_embedded_verbatim(complexity):
    assert PROBLEM in build_prompt(f"  {PROBLEM}\n", complexity)


def test_tiers_differ_only_in_guidance():
    simple = build_prompt(PROBLEM, Complexity.SIMPLE)
    complex_ = build_prompt(PROBLEM, Complexity.COMPLEX)
    assert simple != complex_
    assert "2 a 3 passos" in simple
    assert "4 a 8 passos" in complex_


def test_strict_prompt_extends_normal_prompt():
    normal = build_prompt(PROBLEM, Complexity.MEDIUM)
    strict = build_prompt(PROBLEM, Complexity.MEDIUM, strict=True)
    assert strict.startswith(normal)
    assert "RESTRIÇÕES DE FORMATO" in strict
    assert "NÃO use markdown" in strict


def test_answer_only_prompt_has_no_step_labels():
    prompt = build_answer_only_prompt(PROBLEM)
    assert PROBLEM in prompt
    assert "PASSO" not in prompt
    assert prompt.rstrip().endswith("RESPOSTA:")


def test_similar_prompt_asks_for_three_exercises():
    prompt = build_similar_prompt(PROBLEM)
    assert PROBLEM in prompt
    assert "3 exercícios similares" in prompt
    assert "**Exercício 3:**" in prompt


def test_prompts_are_deterministic():
    assert build_prompt(PROBLEM, Complexity.SIMPLE) == build_prompt(PROBLEM, Complexity.SIMPLE)
