"""Problem Library — listing, search and edits of saved problems.

Invariants:
    - Each mutation runs in one store transaction with its history entry
    - Field validation happens before the transaction opens (pure checks)
    - Deleting a problem removes its memberships with it; the history entry
      keeps the id and text in details, since the row is gone
    - Favorite is a flag on the problem; it does not change memberships

Design Decisions:
    - Transactions go through the CollectionStore: both stores share the
      request's session, and run_in_transaction is the only commit point
"""

import logging

from explicaai.core.domain_types import HistoryAction, ProblemId
from explicaai.core.errors import ProblemValidationError, ResourceNotFoundError
from explicaai.core.problem_records import ProblemRecord
from explicaai.core.problem_rules import (
    ProblemFilters, check_difficulty, check_status, check_tags, normalize_tags,
)
from explicaai.core.repository_protocols import CollectionStore, ProblemStore

logger = logging.getLogger(__name__)


class ProblemLibrary:
    """Saved-problem operations on top of a ProblemStore."""

    def __init__(self, problems: ProblemStore, store: CollectionStore) -> None:
        self.problems = problems
        self.store = store

    async def list_problems(
        self, filters: ProblemFilters,
    ) -> tuple[list[ProblemRecord], int]:
        """One page of problems matching filters, plus the total match count."""
        records = await self.problems.list_problems(filters)
        total = await self.problems.count_problems(filters)
        return records, total

    async def get_problem(self, problem_id: ProblemId) -> ProblemRecord:
        record = await self.problems.get_problem(problem_id)
        if record is None:
            raise ResourceNotFoundError("Problem", str(problem_id))
        return record

    async def update_problem(
        self,
        problem_id: ProblemId,
        *,
        status: str | None = None,
        tags: list[str] | None = None,
        difficulty_level: int | None = None,
    ) -> ProblemRecord:
        for field, error in (
            ("status", check_status(status)),
            ("tags", check_tags(tags)),
            ("difficulty_level", check_difficulty(difficulty_level)),
        ):
            if error:
                raise ProblemValidationError(error, field)
        changes = {
            key: value for key, value in (
                ("status", status),
                ("tags", normalize_tags(tags) if tags is not None else None),
                ("difficulty_level", difficulty_level),
            ) if value is not None
        }
        if not changes:
            raise ProblemValidationError("Nenhum campo para atualizar", "body")

        async def _update() -> ProblemRecord:
            await self.get_problem(problem_id)
            record = await self.problems.update_problem(problem_id, changes)
            await self.store.log_action(
                HistoryAction.UPDATE_PROBLEM,
                problem_id=problem_id,
                details={"changes": changes},
            )
            return record

        record = await self.store.run_in_transaction(_update)
        logger.info(
            f"Problem updated: {', '.join(changes)}",
            extra={"problem_id": str(problem_id)},
        )
        return record

    async def toggle_favorite(self, problem_id: ProblemId) -> bool:
        """Flip is_favorite; returns the new value."""
        async def _toggle() -> bool:
            record = await self.get_problem(problem_id)
            favorite = not record.is_favorite
            await self.problems.update_problem(problem_id, {"is_favorite": favorite})
            await self.store.log_action(
                HistoryAction.FAVORITE if favorite else HistoryAction.UNFAVORITE,
                problem_id=problem_id,
            )
            return favorite

        return await self.store.run_in_transaction(_toggle)

    async def delete_problem(self, problem_id: ProblemId) -> None:
        async def _delete() -> None:
            record = await self.get_problem(problem_id)
            await self.problems.delete_problem(problem_id)
            await self.store.log_action(
                HistoryAction.DELETE_PROBLEM,
                details={
                    "problem_id": str(problem_id),
                    "text": record.text[:100],
                    "collection_ids": [str(c) for c in record.collection_ids],
                },
            )

        await self.store.run_in_transaction(_delete)
        logger.info("Problem deleted", extra={"problem_id": str(problem_id)})
