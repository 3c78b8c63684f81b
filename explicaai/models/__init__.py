"""ORM Models — SQLAlchemy declarative models for all persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Collection and Problem are roots; ProblemCollection links them

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before
      create_all() or alembic autogenerate runs
"""

from explicaai.models.collection import Collection  # noqa: F401
from explicaai.models.problem import Problem  # noqa: F401
from explicaai.models.problem_collection import ProblemCollection  # noqa: F401
from explicaai.models.history_log import HistoryLog  # noqa: F401
