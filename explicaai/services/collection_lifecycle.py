"""Collection Lifecycle — collections, memberships and delete-with-migration.

Invariants:
    - Every problem belongs to at least one collection after every operation
    - The default collection (Favoritos) is never deleted; the protection
      check runs before any write
    - Each public mutation runs in exactly one store transaction, history
      entry included; any failure leaves the store unchanged
    - delete_collection() raises domain errors as is and wraps every other
      failure in MigrationTransactionError chained to the original

Design Decisions:
    - Migration is a per-problem loop with two branches (sole member → gains
      a default membership, otherwise just loses this one) instead of
      set-based UPDATE/DELETE passes; counts fall out of the loop
    - Field validation happens before the transaction opens (pure checks)
"""

import logging
from collections.abc import Awaitable, Callable, Sequence

from explicaai.core.collection_rules import (
    CollectionRecord,
    DEFAULT_COLLECTIONS,
    DeletionReport,
    check_collection_name,
    check_color,
    check_description,
    check_system_update,
    is_protected,
    pick_color,
    pick_icon,
)
from explicaai.core.domain_types import CollectionId, HistoryAction, ProblemId
from explicaai.core.errors import (
    CollectionValidationError,
    DatabaseError,
    DuplicateCollectionError,
    ErrorContext,
    ExplicaError,
    MigrationTransactionError,
    ProtectedCollectionError,
    ResourceNotFoundError,
)
from explicaai.core.repository_protocols import CollectionStore

logger = logging.getLogger(__name__)


class CollectionLifecycleManager:
    """Owns the membership invariant on top of a CollectionStore."""

    def __init__(self, store: CollectionStore) -> None:
        self.store = store

    # ─── Collections ────────────────────────────────────────────

    async def seed_default_collections(self) -> int:
        """Create Favoritos and the category collections if missing. Idempotent."""
        async def _seed() -> int:
            created = 0
            for default in DEFAULT_COLLECTIONS:
                if await self.store.find_collection_by_name(default.name):
                    continue
                await self.store.insert_collection(
                    name=default.name,
                    description=default.description,
                    color=default.color,
                    icon=default.icon,
                    is_system=True,
                    is_default=default.is_default,
                )
                created += 1
            return created

        created = await self.store.run_in_transaction(_seed)
        if created:
            logger.info(f"Seeded {created} default collections")
        return created

    async def list_collections(self) -> list[CollectionRecord]:
        return await self.store.list_collections()

    async def get_collection(self, collection_id: CollectionId) -> CollectionRecord:
        record = await self.store.find_collection_by_id(collection_id)
        if record is None:
            raise ResourceNotFoundError("Collection", str(collection_id))
        return record

    async def create_collection(
        self,
        name: str,
        description: str = "",
        color: str | None = None,
        icon: str | None = None,
    ) -> CollectionRecord:
        _raise_if_invalid(name=name, description=description, color=color)
        clean_name = name.strip()

        async def _create() -> CollectionRecord:
            if await self.store.find_collection_by_name(clean_name):
                raise DuplicateCollectionError(clean_name)
            record = await self.store.insert_collection(
                name=clean_name,
                description=(description or "").strip(),
                color=color or pick_color(),
                icon=icon or pick_icon(),
            )
            await self.store.log_action(
                HistoryAction.CREATE_COLLECTION,
                collection_id=record.id,
                details={"name": record.name, "color": record.color, "icon": record.icon},
            )
            return record

        record = await self.store.run_in_transaction(_create)
        logger.info(
            f"Collection created: {record.name}",
            extra={"collection_id": str(record.id)},
        )
        return record

    async def update_collection(
        self,
        collection_id: CollectionId,
        *,
        name: str | None = None,
        description: str | None = None,
        color: str | None = None,
        icon: str | None = None,
    ) -> CollectionRecord:
        changes = {
            key: value for key, value in (
                ("name", name), ("description", description),
                ("color", color), ("icon", icon),
            ) if value is not None
        }
        if not changes:
            raise CollectionValidationError("Nenhum campo para atualizar", "body")
        if "name" in changes:
            _raise_if_invalid(name=changes["name"])
            changes["name"] = changes["name"].strip()
        _raise_if_invalid(description=description, color=color)
        if "description" in changes:
            changes["description"] = changes["description"].strip()

        async def _update() -> CollectionRecord:
            record = await self.get_collection(collection_id)
            system_error = check_system_update(record, changes)
            if system_error:
                raise CollectionValidationError(system_error, "name")
            if "name" in changes:
                other = await self.store.find_collection_by_name(changes["name"])
                if other is not None and other.id != record.id:
                    raise DuplicateCollectionError(changes["name"])
            updated = await self.store.update_collection(collection_id, changes)
            await self.store.log_action(
                HistoryAction.UPDATE_COLLECTION,
                collection_id=collection_id,
                details={"changes": changes},
            )
            return updated

        return await self.store.run_in_transaction(_update)

    async def delete_collection(self, collection_id: CollectionId) -> DeletionReport:
        """Delete a collection, re-homing its sole-member problems in the default.

        Problems that belong only to this collection gain a membership in the
        default collection; all others just lose this membership. Everything
        happens in one transaction.
        """
        record = await self.get_collection(collection_id)
        if is_protected(record):
            logger.warning(
                "Refused to delete protected collection",
                extra={"collection_id": str(collection_id)},
            )
            raise ProtectedCollectionError(
                record.name, ErrorContext(collection_id=str(collection_id)),
            )

        try:
            report = await self.store.run_in_transaction(
                lambda: self._migrate_and_delete(record),
            )
        except DatabaseError as e:
            raise MigrationTransactionError(str(collection_id), e) from e
        except ExplicaError:
            raise
        except Exception as e:
            logger.error(
                f"Collection deletion rolled back: {e}",
                extra={"collection_id": str(collection_id)},
                exc_info=True,
            )
            raise MigrationTransactionError(str(collection_id), e) from e

        logger.info(
            f"Collection deleted: {record.name} "
            f"(migrated={report.problems_migrated}, detached={report.problems_detached})",
            extra={"collection_id": str(collection_id)},
        )
        return report

    async def _migrate_and_delete(self, record: CollectionRecord) -> DeletionReport:
        default = await self._default_collection()
        migrated = 0
        detached = 0
        for problem_id in await self.store.problem_ids_in_collection(record.id):
            others = await self.store.count_other_memberships(problem_id, record.id)
            if others == 0:
                await self.store.insert_membership(problem_id, default.id)
                migrated += 1
            else:
                detached += 1
        await self.store.delete_memberships_of_collection(record.id)
        await self.store.delete_collection(record.id)
        await self.store.log_action(
            HistoryAction.DELETE_COLLECTION,
            collection_id=record.id,
            details={
                "name": record.name,
                "problems_migrated": migrated,
                "problems_detached": detached,
            },
        )
        return DeletionReport(
            collection_id=record.id,
            problems_migrated=migrated,
            problems_detached=detached,
        )

    # ─── Memberships ────────────────────────────────────────────

    async def file_problem(
        self,
        create_problem: Callable[[], Awaitable[ProblemId]],
        collection_ids: Sequence[CollectionId] = (),
        suggested_name: str | None = None,
    ) -> tuple[ProblemId, list[CollectionId]]:
        """Insert a new problem and its memberships atomically.

        Targets: explicit collection_ids if given, else the collection named
        suggested_name if it exists, else the default collection.
        """
        async def _file() -> tuple[ProblemId, list[CollectionId]]:
            targets = await self._resolve_targets(collection_ids, suggested_name)
            problem_id = await create_problem()
            for collection_id in targets:
                await self.store.insert_membership(problem_id, collection_id)
            await self.store.log_action(
                HistoryAction.SAVE_PROBLEM,
                problem_id=problem_id,
                details={"collection_ids": [str(c) for c in targets]},
            )
            return problem_id, targets

        problem_id, targets = await self.store.run_in_transaction(_file)
        logger.info(
            f"Problem saved into {len(targets)} collection(s)",
            extra={"problem_id": str(problem_id)},
        )
        return problem_id, targets

    async def add_problem_to_collections(
        self, problem_id: ProblemId, collection_ids: Sequence[CollectionId],
    ) -> list[CollectionId]:
        if not collection_ids:
            raise CollectionValidationError(
                "Informe ao menos uma coleção", "collection_ids",
            )

        async def _add() -> list[CollectionId]:
            await self._current_memberships(problem_id)
            targets = await self._existing_collections(collection_ids)
            added = [
                collection_id for collection_id in targets
                if await self.store.insert_membership(problem_id, collection_id)
            ]
            await self.store.log_action(
                HistoryAction.ADD_TO_COLLECTIONS,
                problem_id=problem_id,
                details={"added": [str(c) for c in added]},
            )
            return await self.store.collection_ids_of_problem(problem_id)

        return await self.store.run_in_transaction(_add)

    async def remove_problem_from_collection(
        self, problem_id: ProblemId, collection_id: CollectionId,
    ) -> list[CollectionId]:
        """Remove one membership; the last one is replaced by the default collection."""
        async def _remove() -> list[CollectionId]:
            current = await self._current_memberships(problem_id)
            if collection_id not in current:
                raise ResourceNotFoundError(
                    "Membership", f"{problem_id}/{collection_id}",
                )
            rehome = len(current) == 1
            if rehome:
                default = await self._default_collection()
                if default.id == collection_id:
                    raise CollectionValidationError(
                        "O problema precisa pertencer a pelo menos uma coleção",
                        "collection_id",
                    )
            await self.store.delete_membership(problem_id, collection_id)
            if rehome:
                await self.store.insert_membership(problem_id, default.id)
            await self.store.log_action(
                HistoryAction.REMOVE_FROM_COLLECTION,
                problem_id=problem_id,
                collection_id=collection_id,
                details={"rehomed_to_default": rehome},
            )
            return await self.store.collection_ids_of_problem(problem_id)

        return await self.store.run_in_transaction(_remove)

    async def replace_problem_collections(
        self, problem_id: ProblemId, collection_ids: Sequence[CollectionId],
    ) -> list[CollectionId]:
        """Set a problem's memberships; an empty set means the default collection."""
        async def _replace() -> list[CollectionId]:
            current = await self._current_memberships(problem_id)
            if collection_ids:
                targets = await self._existing_collections(collection_ids)
            else:
                targets = [(await self._default_collection()).id]
            # Insert before delete so the problem never has zero memberships
            for target in targets:
                if target not in current:
                    await self.store.insert_membership(problem_id, target)
            for existing in current:
                if existing not in targets:
                    await self.store.delete_membership(problem_id, existing)
            await self.store.log_action(
                HistoryAction.REPLACE_COLLECTIONS,
                problem_id=problem_id,
                details={"collection_ids": [str(c) for c in targets]},
            )
            return await self.store.collection_ids_of_problem(problem_id)

        return await self.store.run_in_transaction(_replace)

    # ─── Helpers ────────────────────────────────────────────────

    async def _default_collection(self) -> CollectionRecord:
        default = await self.store.find_default_collection()
        if default is None:
            raise ResourceNotFoundError("Collection", "default")
        return default

    async def _current_memberships(self, problem_id: ProblemId) -> list[CollectionId]:
        current = await self.store.collection_ids_of_problem(problem_id)
        if not current:
            raise ResourceNotFoundError("Problem", str(problem_id))
        return current

    async def _existing_collections(
        self, collection_ids: Sequence[CollectionId],
    ) -> list[CollectionId]:
        unique = list(dict.fromkeys(collection_ids))
        for collection_id in unique:
            if await self.store.find_collection_by_id(collection_id) is None:
                raise ResourceNotFoundError("Collection", str(collection_id))
        return unique

    async def _resolve_targets(
        self,
        collection_ids: Sequence[CollectionId],
        suggested_name: str | None,
    ) -> list[CollectionId]:
        if collection_ids:
            return await self._existing_collections(collection_ids)
        if suggested_name:
            suggested = await self.store.find_collection_by_name(suggested_name)
            if suggested is not None:
                return [suggested.id]
        return [(await self._default_collection()).id]


def _raise_if_invalid(
    *,
    name: str | None = None,
    description: str | None = None,
    color: str | None = None,
) -> None:
    """Run the pure field checks that apply; raise on the first failure."""
    checks = []
    if name is not None:
        checks.append(("name", check_collection_name(name)))
    checks.append(("description", check_description(description)))
    checks.append(("color", check_color(color)))
    for field, error in checks:
        if error:
            raise CollectionValidationError(error, field)
