"""Problem Classification — deterministic text-to-category scoring.

Invariants:
    - classify() never raises and always returns a Category from the closed set
    - Identical text always yields an identical ClassificationResult
    - confidence <= 0.95 for matched categories; exactly 0.5 for the default fallback
    - tags: at most 5, no duplicates, category slug first
    - difficulty_level always in [1, 5]

Design Decisions:
    - Keyword based, not semantic: confidence is capped below certainty
    - CATEGORY_PATTERNS is module-level, immutable, built once at import
    - No caching here — see core/classification_cache.py
"""

import math
import re
from dataclasses import dataclass
from types import MappingProxyType

from explicaai.core.domain_types import Category, DEFAULT_CATEGORY

KEYWORD_WEIGHT = 1.0
SYMBOL_WEIGHT = 0.5
RULE_WEIGHT = 2.0
MIN_SCORE = 0.1
MAX_CONFIDENCE = 0.95
DEFAULT_CONFIDENCE = 0.5
MAX_TAGS = 5
SUGGESTION_MIN_CONFIDENCE = 0.6
FAVORITES_COLLECTION = "Favoritos"

_DIFFICULTY_DESCRIPTIONS = {
    1: "Básico",
    2: "Fácil",
    3: "Médio",
    4: "Difícil",
    5: "Avançado",
}


@dataclass(frozen=True)
class CategoryPattern:
    """Static scoring configuration for one category."""
    keywords: frozenset[str]
    symbol_markers: frozenset[str]
    structural_rules: tuple[re.Pattern, ...]
    base_confidence: float

    @property
    def rule_count(self) -> int:
        return (
            len(self.keywords) + len(self.symbol_markers)
            + len(self.structural_rules)
        )


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classify(). Immutable value."""
    category: Category
    confidence: float
    tags: tuple[str, ...]
    difficulty_level: int

    @property
    def difficulty_description(self) -> str:
        return _DIFFICULTY_DESCRIPTIONS[self.difficulty_level]


def _rules(*patterns: str) -> tuple[re.Pattern, ...]:
    return tuple(re.compile(p) for p in patterns)


CATEGORY_PATTERNS: MappingProxyType[Category, CategoryPattern] = MappingProxyType({
    Category.ALGEBRA: CategoryPattern(
        keywords=frozenset({
            "x", "y", "equação", "linear", "sistema",
            "variável", "incógnita", "resolver",
        }),
        symbol_markers=frozenset({"=", "+", "-", "*", "/"}),
        structural_rules=_rules(
            r"\d*x\s*[+\-]\s*\d+\s*=\s*-?\d+",       # 2x + 5 = 13
            r"\b\d*x\s*=\s*-?\d+",                  # x = 5
            r"sistema.*equa[çc][õo]es",
            r"equa[çc][ãa]o.*linear",
            r"\d*[a-z]\s*[+\-]\s*\d*[a-z]\s*=",     # x + y = ...
        ),
        base_confidence=0.7,
    ),
    Category.GEOMETRY: CategoryPattern(
        keywords=frozenset({
            "área", "perímetro", "volume", "círculo", "triângulo",
            "quadrado", "retângulo", "raio", "diâmetro", "pitágoras",
            "hipotenusa", "cateto",
        }),
        symbol_markers=frozenset({"π", "²", "³", "cm", "m²"}),
        structural_rules=_rules(
            r"área.*=",
            r"volume.*=.*π",
            r"perímetro",
            r"teorema\s+de\s+pitágoras",
            r"\d+\s*(cm|m|km)²?\b",
            r"ângulo.*\d+\s*°",
        ),
        base_confidence=0.9,
    ),
    Category.FUNCTIONS: CategoryPattern(
        keywords=frozenset({
            "função", "domínio", "imagem", "gráfico", "sen", "cos",
            "tan", "log", "derivada", "integral",
        }),
        symbol_markers=frozenset({
            "f(x)", "g(x)", "sen(", "cos(", "tan(", "log(", "ln(", "√",
        }),
        structural_rules=_rules(
            r"[fg]\(x\)\s*=",
            r"\b(sen|cos|tan|tg)\s*\(",
            r"\b(sen|cos|tan|tg)\s*\(\s*\d+(?:[.,]\d+)?\s*°",
            r"\b(log|ln)\s*\(",
            r"x\s*\^\s*\d+",
            r"\^\s*x",
        ),
        base_confidence=0.8,
    ),
    Category.ENEM: CategoryPattern(
        keywords=frozenset({
            "enem", "vestibular", "concurso", "porcentagem", "juros",
            "desconto", "regra de três", "proporção", "razão",
            "probabilidade", "estatística", "média", "mediana", "moda",
        }),
        symbol_markers=frozenset({"%"}),
        structural_rules=_rules(
            r"\benem\b",
            r"\d+(?:,\d+)?\s*%",
            r"juros\s+(simples|compostos)",
            r"regra\s+de\s+tr[êe]s",
            r"probabilidade",
            r"\b(média|mediana|moda)\b",
        ),
        base_confidence=0.6,
    ),
    Category.REVIEW: CategoryPattern(
        keywords=frozenset({
            "difícil", "complexo", "não entendi", "confuso",
            "revisar", "estudar mais",
        }),
        symbol_markers=frozenset(),
        structural_rules=_rules(
            r"n[ãa]o\s+entend",
            r"dif[íi]cil",
            r"complicad",
            r"confus",
        ),
        base_confidence=0.4,
    ),
})

# (pattern, weight): summed onto a base of 1.0
_DIFFICULTY_FACTORS: tuple[tuple[re.Pattern, float], ...] = (
    (re.compile(r"\^\s*[2-9]|[²³]"), 1.0),
    (re.compile(r"\b(sen|cos|tan|tg)\s*\("), 1.5),
    (re.compile(r"\b(log|ln)\s*\("), 1.5),
    (re.compile(r"√|raiz"), 0.5),
    (re.compile(r"sistema"), 1.0),
    (re.compile(r"integral|derivada|limite|∫"), 2.0),
    (re.compile(r"matriz|determinante"), 1.5),
    (re.compile(r"\d{3,}"), 0.5),
)

# Ordered: detection order is tag order
_TAG_MARKERS: tuple[tuple[str, re.Pattern], ...] = (
    ("equação", re.compile(r"equa[çc][ãa]o")),
    ("sistema", re.compile(r"sistema")),
    ("função", re.compile(r"fun[çc][ãa]o|f\(x\)")),
    ("geometria", re.compile(r"área|perímetro|volume|círculo|triângulo")),
    ("trigonometria", re.compile(r"\b(sen|cos|tan|tg)\s*\(")),
    ("logaritmo", re.compile(r"\b(log|ln)\s*\(")),
    ("porcentagem", re.compile(r"%|\bpor\s*cento")),
    ("juros", re.compile(r"juros")),
    ("probabilidade", re.compile(r"probabilidade")),
    ("estatística", re.compile(r"estatística|\bmédia\b|\bmediana\b|\bmoda\b")),
)


def classify(text: str) -> ClassificationResult:
    """Classify raw problem text into category, confidence, tags, difficulty."""
    normalized = (text or "").lower().strip()
    category, confidence = score_categories(normalized)
    return ClassificationResult(
        category=category,
        confidence=confidence,
        tags=generate_tags(normalized, category),
        difficulty_level=analyze_difficulty(normalized),
    )


def score_categories(normalized: str) -> tuple[Category, float]:
    """Pick the best-scoring category, or the default below MIN_SCORE."""
    best_category = DEFAULT_CATEGORY
    best_score = 0.0
    for category, pattern in CATEGORY_PATTERNS.items():
        score = category_score(normalized, pattern)
        if score > best_score:
            best_category, best_score = category, score

    if best_score < MIN_SCORE:
        return DEFAULT_CATEGORY, DEFAULT_CONFIDENCE
    return best_category, min(best_score, MAX_CONFIDENCE)


def category_score(normalized: str, pattern: CategoryPattern) -> float:
    """Normalized, confidence-weighted score of one pattern against text."""
    if pattern.rule_count == 0:
        return 0.0
    keyword_hits = sum(1 for k in pattern.keywords if k in normalized)
    symbol_hits = sum(1 for s in pattern.symbol_markers if s in normalized)
    rule_hits = sum(1 for r in pattern.structural_rules if r.search(normalized))
    raw = (
        keyword_hits * KEYWORD_WEIGHT
        + symbol_hits * SYMBOL_WEIGHT
        + rule_hits * RULE_WEIGHT
    )
    return (raw / pattern.rule_count) * pattern.base_confidence


def analyze_difficulty(normalized: str) -> int:
    """Weighted structural cues on a base of 1, rounded half-up into [1, 5]."""
    score = 1.0
    for pattern, weight in _DIFFICULTY_FACTORS:
        if pattern.search(normalized):
            score += weight
    return min(max(math.floor(score + 0.5), 1), 5)


def generate_tags(normalized: str, category: Category) -> tuple[str, ...]:
    """Category slug followed by detected markers, unique, capped at MAX_TAGS."""
    tags = [category.slug]
    for tag, pattern in _TAG_MARKERS:
        if tag not in tags and pattern.search(normalized):
            tags.append(tag)
    return tuple(tags[:MAX_TAGS])


def suggest_collection(result: ClassificationResult) -> str:
    """Collection name a new problem should be filed under by default."""
    if result.confidence < SUGGESTION_MIN_CONFIDENCE:
        return FAVORITES_COLLECTION
    return result.category.value
