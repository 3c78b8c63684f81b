"""Study Stats — dashboard, per-collection stats and the activity history."""

from datetime import datetime, timezone

from explicaai.core.domain_types import CollectionId, HistoryAction
from explicaai.core.errors import ResourceNotFoundError
from explicaai.core.repository_protocols import StatsStore
from explicaai.core.study_stats import CollectionStats, GeneralStats, HistoryEntry


class StudyStatsService:
    """Read-only reports over a StatsStore. The clock is injectable for tests."""

    def __init__(self, stats: StatsStore, clock=None) -> None:
        self.stats = stats
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def general(self) -> GeneralStats:
        return await self.stats.general_stats(self.clock())

    async def collection(self, collection_id: CollectionId) -> CollectionStats:
        result = await self.stats.collection_stats(collection_id, self.clock())
        if result is None:
            raise ResourceNotFoundError("Collection", str(collection_id))
        return result

    async def history(
        self, limit: int = 20, offset: int = 0, action: HistoryAction | None = None,
    ) -> list[HistoryEntry]:
        return await self.stats.history(limit=limit, offset=offset, action=action)
