from typing import Dict, List, Any, Optional
from collections import defaultdict
import asyncio
import uuid

from railroad.domain.collaborators import SocialGraph
from railroad.domain.models.context import utcnow


class InMemorySocialGraph(SocialGraph):
    """Manages social entities and their interaction history in process"""

    def __init__(self, max_interactions_per_entity: int = 100):
        self.entities: Dict[str, Dict[str, Any]] = {}
        self.interactions: Dict[str, List[Dict[str, Any]]] = defaultdict(list)
        self.max_interactions_per_entity = max_interactions_per_entity
        self._lock = asyncio.Lock()

    async def add_entity(
        self,
        name: str,
        entity_type: str = "person",
        display_name: Optional[str] = None,
        relationship: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Register an entity, names are case-insensitive"""

        async with self._lock:
            entity = {
                "id": uuid.uuid4().hex,
                "name": name.lower(),
                "entity_type": entity_type,
                "display_name": display_name or name,
                "relationship": relationship,
                "last_interaction": None
            }
            self.entities[name.lower()] = entity
            return dict(entity)

    async def get_entity(self, name: str) -> Optional[Dict[str, Any]]:
        async with self._lock:
            entity = self.entities.get(name.lower())
            if entity is None:
                return None
            snapshot = dict(entity)
            if entity.get("relationship") is not None:
                snapshot["relationship"] = dict(entity["relationship"])
            return snapshot

    async def record_interaction(
        self,
        entity_name: str,
        interaction_type: str,
        summary: str,
        context: str,
        quality: float
    ) -> Dict[str, Any]:
        """Record an interaction; the entity must exist"""

        async with self._lock:
            key = entity_name.lower()
            entity = self.entities.get(key)
            if entity is None:
                raise KeyError(f"Unknown social entity: {entity_name}")

            interaction = {
                "id": uuid.uuid4().hex,
                "entity_name": key,
                "interaction_type": interaction_type,
                "summary": summary,
                "context": context,
                "quality": quality,
                "created_at": utcnow().isoformat()
            }
            self.interactions[key].append(interaction)
            entity["last_interaction"] = interaction["created_at"]

            if len(self.interactions[key]) > self.max_interactions_per_entity:
                self.interactions[key] = self.interactions[key][-self.max_interactions_per_entity:]

            return dict(interaction)

    async def list_recent_interactions(self, entity_name: str, limit: int = 5) -> List[Dict[str, Any]]:
        async with self._lock:
            history = self.interactions.get(entity_name.lower(), [])
            return [dict(item) for item in reversed(history[-limit:])] if limit > 0 else []
