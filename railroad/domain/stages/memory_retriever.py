from collections import Counter
from typing import List
import structlog

from railroad.domain.collaborators import MemoryStore
from railroad.domain.memory.relevance import content_text, tokenize
from railroad.domain.models.context import Context, MemoryContext, MemoryRecord
from .base_stage import ProcessingStage

logger = structlog.get_logger(__name__)


NOT_REQUIRED_QUERY = "N/A - not required by analysis"
MAX_QUERY_WORDS = 5
MIN_WORD_LENGTH = 4


def build_search_query(context: Context) -> str:
    """Up to five significant message words, then the mentioned entities"""

    terms: List[str] = [word for word in tokenize(context.message) if len(word) >= MIN_WORD_LENGTH]
    terms = terms[:MAX_QUERY_WORDS]
    if context.analysis:
        terms.extend(entity.lower() for entity in context.analysis.entities_mentioned)
    return " ".join(dict.fromkeys(terms))


def summarize_memories(memories: List[MemoryRecord], entities: List[str]) -> List[str]:
    """Primary category and most referenced entity across the recalled records"""

    insights: List[str] = []

    categories = Counter(tag for memory in memories for tag in memory.tags)
    if categories:
        tag, count = categories.most_common(1)[0]
        insights.append(f"Primary memory category: {tag} ({count} memories)")

    mentions = Counter()
    for memory in memories:
        text = content_text(memory.content).lower()
        for entity in entities:
            if entity.lower() in text:
                mentions[entity.lower()] += 1
    if mentions:
        entity, count = mentions.most_common(1)[0]
        insights.append(f"Most referenced entity: {entity} ({count} mentions)")

    return insights


class MemoryRetrievalStage(ProcessingStage):
    """Recalls memories relevant to the message when the analysis asks for it"""

    name = "memory-context"

    def __init__(
        self,
        store: MemoryStore,
        max_records: int = 5,
        recent_activity_limit: int = 5,
        importance_filter: str = "medium"
    ):
        self.store = store
        self.max_records = max_records
        self.recent_activity_limit = recent_activity_limit
        self.importance_filter = importance_filter

    async def run(self, context: Context) -> Context:
        if context.analysis is None or not context.analysis.requires_memory:
            return self.complete(
                context,
                memory_context=MemoryContext(search_query=NOT_REQUIRED_QUERY)
            )

        entities = list(context.analysis.entities_mentioned)
        search_query = build_search_query(context)

        try:
            records = []
            # A message with no significant words has nothing to match against
            if search_query:
                records = await self.store.search(
                    search_query,
                    tags=entities,
                    importance_filter=self.importance_filter,
                    limit=self.max_records
                )
        except Exception as exc:
            logger.warning("Memory search failed", query=search_query, error=str(exc))
            context = context.with_error(self.name, f"Memory search failed: {exc}", recoverable=True)
            return self.complete(
                context,
                memory_context=MemoryContext(search_query=f"Failed to search: {exc}")
            )

        relevant = list(records)[:self.max_records]
        total_memories = 0
        recent_activity: List[MemoryRecord] = []

        # Statistics are best effort
        try:
            total_memories = await self.store.count()
            if self.recent_activity_limit > 0:
                recent = await self.store.search("", tags=[], limit=self.recent_activity_limit)
                recent_activity = list(recent)[:self.recent_activity_limit]
        except Exception as exc:
            logger.warning("Memory statistics unavailable", error=str(exc))

        logger.debug("Memories recalled", query=search_query, found=len(relevant))

        return self.complete(
            context,
            memory_context=MemoryContext(
                relevant_memories=relevant,
                total_memories=total_memories,
                recent_activity=recent_activity,
                search_query=search_query,
                insights=summarize_memories(relevant, entities),
            ),
            logs={"memories_accessed": [record.key for record in relevant]}
        )
