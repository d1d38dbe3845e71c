from typing import Dict, List, Any, Optional
import asyncio

from railroad.domain.collaborators import MemoryStore, importance_rank
from railroad.domain.models.context import MemoryRecord, utcnow
from .relevance import RelevanceScorer


class InMemoryMemoryStore(MemoryStore):
    """In-process memory store with keyword relevance search"""

    def __init__(self, max_records: int = 1000, scorer: Optional[RelevanceScorer] = None):
        self.records: Dict[str, MemoryRecord] = {}
        self.max_records = max_records
        self.scorer = scorer or RelevanceScorer()
        self._lock = asyncio.Lock()

    async def store(
        self,
        key: str,
        content: Any,
        tags: Optional[List[str]] = None,
        importance: str = "medium"
    ) -> MemoryRecord:
        """Add or replace a record"""

        async with self._lock:
            record = MemoryRecord(
                key=key,
                content=content,
                tags=list(tags or []),
                importance=importance,
                stored_at=utcnow()
            )
            self.records.pop(key, None)
            self.records[key] = record

            # Drop the oldest records past the limit
            while len(self.records) > self.max_records:
                oldest = next(iter(self.records))
                del self.records[oldest]

            return record.model_copy()

    async def search(
        self,
        query: str,
        tags: Optional[List[str]] = None,
        importance_filter: Optional[str] = None,
        limit: int = 10
    ) -> List[MemoryRecord]:
        """Search records; an empty query returns the most recent ones"""

        async with self._lock:
            wanted_tags = {tag.lower() for tag in tags or []}
            minimum = importance_rank(importance_filter) if importance_filter else 0

            candidates = []
            for record in reversed(list(self.records.values())):
                if importance_rank(record.importance) < minimum:
                    continue
                if wanted_tags and not wanted_tags & {tag.lower() for tag in record.tags}:
                    continue
                score = self.scorer.score(query, record.key, record.content, record.tags)
                if query.strip() and score <= 0:
                    continue
                candidates.append(record.model_copy(update={"score": score}))

            # Stable sort keeps newest first among equal scores
            candidates.sort(key=lambda item: item.score, reverse=True)
            return candidates[:limit]

    async def count(self) -> int:
        async with self._lock:
            return len(self.records)
