"""Study Stats — tests for the dashboard, per-collection stats and history.

Tests cover:
    - General totals, breakdowns, averages, top collections and tags
    - Recent-activity windows follow the injected clock
    - Per-collection stats; unknown collection is a 404
    - History is newest first, filterable by action, with problem text
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from explicaai.core.collection_rules import FAVORITES_NAME
from explicaai.core.domain_types import Category, HistoryAction, ProblemStatus
from explicaai.core.errors import ResourceNotFoundError
from explicaai.infrastructure.stats_store import SqlStatsStore
from explicaai.services.study_stats import StudyStatsService


@pytest.fixture
def study_stats(test_db):
    return StudyStatsService(SqlStatsStore(test_db))


# ─── General ────────────────────────────────────────────────────

async def test_general_stats_on_empty_database(study_stats, defaults):
    stats = await study_stats.general()
    assert stats.total_problems == 0
    assert stats.user_collections == 0
    assert stats.average_difficulty == 0.0
    assert stats.total_solve_time_ms == 0
    assert stats.status_breakdown == {}
    assert stats.top_tags == ()
    assert len(stats.top_collections) == 3
    assert all(c.problem_count == 0 for c in stats.top_collections)


async def test_general_stats_totals_and_breakdowns(
    study_stats, lifecycle, defaults, make_problem,
):
    geometry = defaults[Category.GEOMETRY.value].id
    await lifecycle.create_collection("Lista 1")
    await make_problem(geometry, text="Área do quadrado", difficulty_level=2,
                       tags=["geometria", "área"], solved_time_ms=1200)
    await make_problem(geometry, text="Perímetro", difficulty_level=3,
                       tags=["geometria"], solved_time_ms=800, is_favorite=True)
    await make_problem(text="Calcule: 2 + 2", difficulty_level=2,
                       tags=["álgebra"], status=ProblemStatus.REVIEW)

    stats = await study_stats.general()
    assert stats.total_problems == 3
    assert stats.user_collections == 1
    assert stats.favorites == 1
    assert stats.problems_today == 3
    assert stats.problems_this_week == 3
    assert stats.average_difficulty == 2.3
    assert stats.total_solve_time_ms == 2000
    assert stats.status_breakdown == {"resolved": 2, "review": 1}
    assert stats.source_breakdown == {"text": 3}
    assert stats.difficulty_breakdown == {2: 2, 3: 1}
    assert stats.top_collections[0].name == Category.GEOMETRY.value
    assert stats.top_collections[0].problem_count == 2
    assert stats.top_tags[0] == ("geometria", 2)


async def test_recent_windows_follow_the_clock(test_db, defaults, make_problem):
    await make_problem()
    later = datetime.now(timezone.utc) + timedelta(days=10)
    stats = await StudyStatsService(SqlStatsStore(test_db), clock=lambda: later).general()
    assert stats.total_problems == 1
    assert stats.problems_today == 0
    assert stats.problems_this_week == 0


# ─── Per collection ─────────────────────────────────────────────

async def test_collection_stats(study_stats, defaults, make_problem):
    algebra = defaults[Category.ALGEBRA.value]
    await make_problem(algebra.id, text="Calcule: 1 + 1", difficulty_level=1)
    await make_problem(algebra.id, text="Resolva: 3x = 9", difficulty_level=2)
    await make_problem(text="Calcule: 5 + 5", difficulty_level=5)

    stats = await study_stats.collection(algebra.id)
    assert stats.collection_id == algebra.id
    assert stats.name == Category.ALGEBRA.value
    assert stats.is_system
    assert stats.total_problems == 2
    assert stats.recently_added == 2
    assert stats.difficulty_breakdown == {1: 1, 2: 1}
    assert stats.source_breakdown == {"text": 2}


async def test_collection_stats_unknown_collection(study_stats, defaults):
    with pytest.raises(ResourceNotFoundError):
        await study_stats.collection(uuid4())


# ─── History ────────────────────────────────────────────────────

async def test_history_lists_actions_with_problem_text(
    study_stats, library, defaults, make_problem,
):
    problem_id = await make_problem(text="Calcule: 7 * 6")
    await library.toggle_favorite(problem_id)

    entries = await study_stats.history()
    assert {e.action for e in entries} == {
        HistoryAction.SAVE_PROBLEM.value, HistoryAction.FAVORITE.value,
    }
    assert all(e.problem_text == "Calcule: 7 * 6" for e in entries)
    assert entries[0].created_at >= entries[-1].created_at


async def test_history_filter_and_pagination(study_stats, lifecycle, defaults):
    for name in ("Lista 1", "Lista 2", "Lista 3"):
        await lifecycle.create_collection(name)

    created = await study_stats.history(action=HistoryAction.CREATE_COLLECTION)
    assert len(created) == 3
    assert all(e.collection_id is not None for e in created)
    assert len(await study_stats.history(limit=2)) == 2
    assert len(await study_stats.history(limit=2, offset=2)) == 1
    assert await study_stats.history(action=HistoryAction.DELETE_PROBLEM) == []


async def test_favoritos_counts_in_top_collections(study_stats, defaults, make_problem):
    await make_problem()
    stats = await study_stats.general()
    assert stats.top_collections[0].name == FAVORITES_NAME
    assert stats.top_collections[0].problem_count == 1
