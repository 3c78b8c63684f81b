"""Complexity Detection — tests for the structural prompt-tier heuristics."""

import pytest

from explicaai.core.detect_complexity import detect_complexity
from explicaai.core.domain_types import Complexity


@pytest.mark.parametrize("text", [
    "Resolva a equação: 2x + 5 = 13",
    "Calcule: 12 + 30",
    "7 × 8 = ?",
    "x = 4",
    "Resolva: 3x - 2 = 10",
])
def test_single_step_problems_are_simple(text):
    assert detect_complexity(text) is Complexity.SIMPLE


@pytest.mark.parametrize("text", [
    "Calcule sen(30°) em um triângulo retângulo",
    "Qual a derivada de x^3?",
    "Calcule log(100)",
    "Encontre o determinante da matriz 2x2",
    "Calcule a integral de 2x",
])
def test_advanced_markers_are_complex(text):
    assert detect_complexity(text) is Complexity.COMPLEX


@pytest.mark.parametrize("text", [
    "Resolva o sistema: x + y = 10 e x - y = 2",
    "Qual a área de um círculo de raio 3 cm?",
    "2x + 3 = x - 5",
    "",
])
def test_everything_else_is_medium(text):
    assert detect_complexity(text) is Complexity.MEDIUM


def test_complex_wins_over_simple_shape():
    assert detect_complexity("Calcule: sen(30) + 1") is Complexity.COMPLEX
