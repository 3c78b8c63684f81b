"""Problem Classification — tests for deterministic category, difficulty and tags.

Tests cover:
    - The two reference problems (linear equation, trigonometry in a triangle)
    - Default category at confidence 0.5 when nothing scores
    - Determinism and the closed category set
    - Tag uniqueness, ordering and cap
    - Difficulty clamping and half-up rounding
    - suggest_collection threshold
"""

import pytest

from explicaai.core.classify_problem import (
    CATEGORY_PATTERNS,
    DEFAULT_CONFIDENCE,
    MAX_CONFIDENCE,
    MAX_TAGS,
    ClassificationResult,
    analyze_difficulty,
    category_score,
    classify,
    generate_tags,
    suggest_collection,
)
from explicaai.core.domain_types import Category

SAMPLES = [
    "Resolva a equação: 2x + 5 = 13",
    "Calcule sen(30°) em um triângulo retângulo",
    "Qual a área de um círculo de raio 3 cm?",
    "Um produto custa R$ 200 e tem desconto de 15%. Qual o preço final?",
    "Não entendi essa conta, está muito difícil",
    "f(x) = x^2 + 3x, qual o domínio?",
    "",
    "   ",
    "Qual é o seu nome?",
]


# ─── Reference problems ─────────────────────────────────────────

def test_linear_equation_is_basic_algebra():
    result = classify("Resolva a equação: 2x + 5 = 13")
    assert result.category is Category.ALGEBRA
    assert result.difficulty_level in (1, 2)
    assert "equação" in result.tags
    assert result.tags[0] == "álgebra-básica"


def test_linear_equation_confidence_is_weighted_score():
    result = classify("Resolva a equação: 2x + 5 = 13")
    assert result.confidence == pytest.approx(5 / 18 * 0.7)


def test_trigonometry_in_triangle_is_functions():
    result = classify("Calcule sen(30°) em um triângulo retângulo")
    assert result.category is Category.FUNCTIONS
    assert result.difficulty_level >= 3


def test_trigonometry_tags_in_detection_order():
    result = classify("Calcule sen(30°) em um triângulo retângulo")
    assert result.tags == ("funções", "geometria", "trigonometria")


def test_geometry_problem():
    result = classify("Qual a área de um círculo de raio 3 cm?")
    assert result.category is Category.GEOMETRY
    assert "geometria" in result.tags


def test_percentage_problem_is_enem():
    result = classify("Um produto tem desconto de 15%. Qual o preço final com juros simples?")
    assert result.category is Category.ENEM
    assert "porcentagem" in result.tags
    assert "juros" in result.tags


# ─── Default fallback ───────────────────────────────────────────

def test_unmatched_text_falls_back_to_default():
    result = classify("Qual é o seu nome?")
    assert result.category is Category.ALGEBRA
    assert result.confidence == DEFAULT_CONFIDENCE
    assert result.tags == ("álgebra-básica",)
    assert result.difficulty_level == 1


@pytest.mark.parametrize("text", ["", "   ", None])
def test_empty_text_never_raises(text):
    result = classify(text)
    assert result.category is Category.ALGEBRA
    assert result.confidence == DEFAULT_CONFIDENCE


# ─── Properties ─────────────────────────────────────────────────

@pytest.mark.parametrize("text", SAMPLES)
def test_classification_is_deterministic(text):
    assert classify(text) == classify(text)


@pytest.mark.parametrize("text", SAMPLES)
def test_result_stays_in_bounds(text):
    result = classify(text)
    assert result.category in set(Category)
    assert 0.0 < result.confidence <= MAX_CONFIDENCE
    assert 1 <= result.difficulty_level <= 5
    assert len(result.tags) <= MAX_TAGS
    assert len(set(result.tags)) == len(result.tags)


def test_tags_capped_at_five():
    text = "equação do sistema com função, área, sen(x), log(2), 10% de juros"
    tags = classify(text).tags
    assert len(tags) == MAX_TAGS
    assert tags[1:] == ("equação", "sistema", "função", "geometria")


def test_generate_tags_never_duplicates_category_slug():
    tags = generate_tags("área do triângulo", Category.GEOMETRY)
    assert tags == ("geometria",)


def test_every_category_pattern_scores_positive_on_its_own_keywords():
    for category, pattern in CATEGORY_PATTERNS.items():
        text = " ".join(sorted(pattern.keywords))
        assert category_score(text, pattern) > 0, category


# ─── Difficulty ─────────────────────────────────────────────────

def test_difficulty_rounds_half_up():
    # base 1.0 + trig 1.5 = 2.5 → 3
    assert analyze_difficulty("sen(45°)") == 3


def test_difficulty_clamped_to_five():
    text = "integral de sen(x) por log(x) com matriz 1000 e raiz de x^2"
    assert analyze_difficulty(text) == 5


def test_difficulty_description():
    result = ClassificationResult(Category.ALGEBRA, 0.5, (), 4)
    assert result.difficulty_description == "Difícil"


# ─── suggest_collection ─────────────────────────────────────────

def test_low_confidence_suggests_favorites():
    result = ClassificationResult(Category.GEOMETRY, 0.59, (), 1)
    assert suggest_collection(result) == "Favoritos"


def test_confident_result_suggests_category_collection():
    result = ClassificationResult(Category.GEOMETRY, 0.6, (), 1)
    assert suggest_collection(result) == "Geometria"
