"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test doubles need no base class
    - Store methods never commit; only run_in_transaction() ends a transaction,
      so a service can compose several writes into one atomic unit
    - Reads return frozen records (CollectionRecord, ProblemRecord), never ORM rows
"""

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Protocol, TypeVar

from explicaai.core.cancellation import CancelToken
from explicaai.core.collection_rules import CollectionRecord
from explicaai.core.domain_types import CollectionId, HistoryAction, ProblemId
from explicaai.core.explanation_types import GenerationOptions, ModelResponse
from explicaai.core.problem_records import ProblemDraft, ProblemRecord
from explicaai.core.problem_rules import ProblemFilters
from explicaai.core.study_stats import (
    CollectionStats, GeneralStats, HistoryEntry,
)

T = TypeVar("T")


class ModelClient(Protocol):
    """Contract for the generative model — implemented by shell.

    Raises GenerationUnavailableError on transport failure and
    ExplanationCancelled when the token fires while a call is in flight.
    """
    async def generate(
        self, prompt: str, options: GenerationOptions, cancel_token: CancelToken,
    ) -> ModelResponse: ...


class CollectionStore(Protocol):
    """Contract for collection and membership persistence — implemented by shell."""
    async def run_in_transaction(self, fn: Callable[[], Awaitable[T]]) -> T: ...

    async def find_collection_by_id(
        self, collection_id: CollectionId,
    ) -> CollectionRecord | None: ...
    async def find_collection_by_name(self, name: str) -> CollectionRecord | None: ...
    async def find_default_collection(self) -> CollectionRecord | None: ...
    async def list_collections(self) -> list[CollectionRecord]: ...

    async def insert_collection(
        self,
        *,
        name: str,
        description: str,
        color: str,
        icon: str,
        is_system: bool = False,
        is_default: bool = False,
    ) -> CollectionRecord: ...
    async def update_collection(
        self, collection_id: CollectionId, changes: dict,
    ) -> CollectionRecord: ...
    async def delete_collection(self, collection_id: CollectionId) -> None: ...

    async def insert_membership(
        self, problem_id: ProblemId, collection_id: CollectionId,
    ) -> bool: ...
    async def delete_membership(
        self, problem_id: ProblemId, collection_id: CollectionId,
    ) -> bool: ...
    async def delete_memberships_of_collection(
        self, collection_id: CollectionId,
    ) -> int: ...
    async def count_memberships(self, problem_id: ProblemId) -> int: ...
    async def count_other_memberships(
        self, problem_id: ProblemId, collection_id: CollectionId,
    ) -> int: ...
    async def problem_ids_in_collection(
        self, collection_id: CollectionId,
    ) -> list[ProblemId]: ...
    async def collection_ids_of_problem(
        self, problem_id: ProblemId,
    ) -> list[CollectionId]: ...

    async def log_action(
        self,
        action: HistoryAction,
        *,
        problem_id: ProblemId | None = None,
        collection_id: CollectionId | None = None,
        details: dict | None = None,
    ) -> None: ...


class ProblemStore(Protocol):
    """Contract for problem persistence — implemented by shell."""
    async def insert_problem(self, draft: ProblemDraft) -> ProblemId: ...
    async def get_problem(self, problem_id: ProblemId) -> ProblemRecord | None: ...
    async def list_collection_problems(
        self, collection_id: CollectionId, limit: int = 50, offset: int = 0,
    ) -> list[ProblemRecord]: ...
    async def list_problems(self, filters: ProblemFilters) -> list[ProblemRecord]: ...
    async def count_problems(self, filters: ProblemFilters) -> int: ...
    async def update_problem(
        self, problem_id: ProblemId, changes: dict,
    ) -> ProblemRecord: ...
    async def delete_problem(self, problem_id: ProblemId) -> bool: ...


class StatsStore(Protocol):
    """Contract for aggregate reads over problems, collections and history."""
    async def general_stats(self, now: datetime) -> GeneralStats: ...
    async def collection_stats(
        self, collection_id: CollectionId, now: datetime,
    ) -> CollectionStats | None: ...
    async def history(
        self, limit: int = 20, offset: int = 0, action: HistoryAction | None = None,
    ) -> list[HistoryEntry]: ...

