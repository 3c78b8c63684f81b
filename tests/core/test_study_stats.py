"""Study Stats — tests for the pure aggregation helpers.

Tests cover:
    - top_tags counts a tag once per problem and respects the limit
    - round_tenth rounds half-up and maps empty averages to 0.0
"""

import pytest

from explicaai.core.study_stats import round_tenth, top_tags


def test_top_tags_orders_by_count():
    tag_lists = [
        ["álgebra", "equação"],
        ["álgebra", "linear"],
        ["geometria"],
        ["álgebra", "equação"],
    ]
    assert top_tags(tag_lists) == (
        ("álgebra", 3), ("equação", 2), ("linear", 1), ("geometria", 1),
    )


def test_top_tags_counts_once_per_problem():
    assert top_tags([["a", "a", "a"], ["b"]]) == (("a", 1), ("b", 1))


def test_top_tags_limit_and_empty_lists():
    assert top_tags([None, [], ["a", "b", "c"]], limit=2) == (("a", 1), ("b", 1))
    assert top_tags([]) == ()


@pytest.mark.parametrize("value, expected", [
    (None, 0.0),
    (0, 0.0),
    (2.25, 2.3),
    (2.24, 2.2),
    (3, 3.0),
])
def test_round_tenth(value, expected):
    assert round_tenth(value) == expected
