from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Any, Optional
from pydantic import BaseModel

from railroad.domain.models.context import MemoryRecord


IMPORTANCE_LEVELS = ["low", "medium", "high", "critical"]


def importance_rank(level: Optional[str]) -> int:
    """Position of an importance level, unknown levels rank lowest"""
    if level in IMPORTANCE_LEVELS:
        return IMPORTANCE_LEVELS.index(level)
    return 0


class Completion(BaseModel):
    """Text produced by the completion capability"""
    text: str


class CompletionService(ABC):
    """LLM completion capability"""

    @abstractmethod
    async def complete(self, prompt: str, context: Optional[str] = None) -> Completion:
        """Complete a prompt, optionally framed by a system context"""
        pass


class MemoryStore(ABC):
    """Memory search capability"""

    @abstractmethod
    async def search(
        self,
        query: str,
        tags: Optional[List[str]] = None,
        importance_filter: Optional[str] = None,
        limit: int = 10
    ) -> List[MemoryRecord]:
        """Return records relevant to ``query``, best match first"""
        pass

    @abstractmethod
    async def count(self) -> int:
        """Total number of stored records"""
        pass

    @abstractmethod
    async def store(
        self,
        key: str,
        content: Any,
        tags: Optional[List[str]] = None,
        importance: str = "medium"
    ) -> MemoryRecord:
        """Store a record and return it"""
        pass


class SocialGraph(ABC):
    """Social relationship capability"""

    @abstractmethod
    async def get_entity(self, name: str) -> Optional[Dict[str, Any]]:
        """Return the entity with its current relationship, or None"""
        pass

    @abstractmethod
    async def record_interaction(
        self,
        entity_name: str,
        interaction_type: str,
        summary: str,
        context: str,
        quality: float
    ) -> Dict[str, Any]:
        """Record an interaction with an entity"""
        pass

    @abstractmethod
    async def list_recent_interactions(self, entity_name: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Most recent interactions with an entity, newest first"""
        pass


class ConfigurationSource(ABC):
    """Typed configuration lookup"""

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """Return the configured value for ``key`` or ``default``"""
        pass


class SessionStateProvider(ABC):
    """Source of the upstream session state"""

    @abstractmethod
    async def get_current_state(self) -> Optional[Dict[str, Any]]:
        """Return the active session state, or None when there is none"""
        pass


@dataclass
class Collaborators:
    """Explicit handles to every capability the stages consume"""
    memory_store: MemoryStore
    social_graph: SocialGraph
    configuration: ConfigurationSource
    session_state: SessionStateProvider
    completion: Optional[CompletionService] = None
