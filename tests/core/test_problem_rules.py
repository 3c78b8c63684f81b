"""Problem Rules — tests for saved-problem field checks and filters.

Tests cover:
    - Status, difficulty and tag checks return a message or None
    - Tag normalization (strip, drop empties, dedupe, keep order)
    - ProblemFilters rejects unknown sort fields
"""

import pytest

from explicaai.core.problem_rules import (
    MAX_TAG_LENGTH, MAX_TAGS_PER_PROBLEM, SORT_FIELDS, ProblemFilters,
    check_difficulty, check_status, check_tags, normalize_tags,
)


# ─── Checks ─────────────────────────────────────────────────────

@pytest.mark.parametrize("status", [None, "resolved", "studying", "review"])
def test_known_statuses_pass(status):
    assert check_status(status) is None


@pytest.mark.parametrize("status", ["done", "", "RESOLVED"])
def test_unknown_status_is_rejected(status):
    assert "Status inválido" in check_status(status)


@pytest.mark.parametrize("level", [None, 1, 3, 5])
def test_difficulty_in_range_passes(level):
    assert check_difficulty(level) is None


@pytest.mark.parametrize("level", [0, 6, -1])
def test_difficulty_out_of_range_is_rejected(level):
    assert check_difficulty(level) == "Dificuldade deve ser entre 1 e 5"


def test_tags_limits():
    assert check_tags(None) is None
    assert check_tags([]) is None
    assert check_tags([f"t{i}" for i in range(MAX_TAGS_PER_PROBLEM)]) is None
    assert check_tags([f"t{i}" for i in range(MAX_TAGS_PER_PROBLEM + 1)])
    assert check_tags(["x" * (MAX_TAG_LENGTH + 1)])


def test_duplicate_tags_count_once():
    assert check_tags(["a"] * (MAX_TAGS_PER_PROBLEM + 5)) is None


def test_normalize_tags():
    assert normalize_tags([" equação ", "", "  ", "equação", "linear"]) == [
        "equação", "linear",
    ]


# ─── Filters ────────────────────────────────────────────────────

def test_default_filters_sort_newest_first():
    filters = ProblemFilters()
    assert filters.sort == "created_at"
    assert filters.descending
    assert filters.tags == ()


@pytest.mark.parametrize("sort", SORT_FIELDS)
def test_every_sort_field_is_accepted(sort):
    assert ProblemFilters(sort=sort).sort == sort


def test_unknown_sort_field_is_rejected():
    with pytest.raises(ValueError):
        ProblemFilters(sort="text; DROP TABLE problems")
