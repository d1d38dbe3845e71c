from typing import Iterable, Optional
import structlog
from langchain_core.language_models.chat_models import BaseChatModel

from railroad.domain.collaborators import Collaborators
from railroad.domain.memory.cache_store import TTLCache
from railroad.domain.memory.memory_store import InMemoryMemoryStore
from railroad.domain.social.social_graph import InMemorySocialGraph
from railroad.domain.state.state_manager import StateManager
from railroad.infrastructure.config.configuration_service import (
    ConfigurationService, InMemoryConfigurationStore
)
from railroad.infrastructure.config.settings import Settings
from railroad.infrastructure.llm.langchain_completion import LangChainCompletionService

logger = structlog.get_logger(__name__)


def build_default_collaborators(
    settings: Settings,
    chat_model: Optional[BaseChatModel] = None
) -> Collaborators:
    """In-process collaborators; completion is only wired when a chat model is given"""

    configuration = ConfigurationService(
        InMemoryConfigurationStore(),
        cache=TTLCache(default_ttl=settings.config_cache_ttl_seconds)
    )

    return Collaborators(
        memory_store=InMemoryMemoryStore(),
        social_graph=InMemorySocialGraph(),
        configuration=configuration,
        session_state=StateManager(),
        completion=LangChainCompletionService(chat_model) if chat_model is not None else None,
    )


async def seed_known_entities(graph: InMemorySocialGraph, names: Iterable[str]) -> int:
    """Register every known name that the graph does not hold yet"""

    added = 0
    for name in names:
        if await graph.get_entity(name) is None:
            await graph.add_entity(name, relationship={"strength": 0.5})
            added += 1

    logger.info("Known entities seeded", added=added)
    return added
