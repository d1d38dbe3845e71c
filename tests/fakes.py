"""
Fake collaborators shared by the test modules
"""
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Any, Optional

from railroad.domain.collaborators import (
    Completion, CompletionService, ConfigurationSource,
    MemoryStore, SessionStateProvider, SocialGraph
)
from railroad.domain.models.context import MemoryRecord


class FakeClock:
    """Monotonic seconds that only move when told to"""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class SteppingClock:
    """Datetime clock that moves a fixed step on every call"""

    def __init__(self, step_ms: float = 10.0):
        self.current = datetime(2024, 1, 1, tzinfo=timezone.utc)
        self.step = timedelta(milliseconds=step_ms)

    def __call__(self) -> datetime:
        value = self.current
        self.current += self.step
        return value


class FakeCompletion(CompletionService):
    """Replies with JSON for analysis prompts and plain text otherwise"""

    def __init__(self, analysis: Optional[str] = None, reply: str = "Hello from the model"):
        self.analysis = analysis
        self.reply = reply
        self.prompts: List[str] = []

    async def complete(self, prompt: str, context: Optional[str] = None) -> Completion:
        self.prompts.append(prompt)
        if prompt.startswith("Analyze this message"):
            if self.analysis is None:
                raise RuntimeError("analysis model offline")
            return Completion(text=self.analysis)
        return Completion(text=self.reply)


class FailingCompletion(CompletionService):
    async def complete(self, prompt: str, context: Optional[str] = None) -> Completion:
        raise ConnectionError("completion service unreachable")


class RecordingMemoryStore(MemoryStore):
    """Counts every call and returns canned records"""

    def __init__(self, records: Optional[List[MemoryRecord]] = None):
        self.records = records or []
        self.calls: List[str] = []

    async def search(self, query, tags=None, importance_filter=None, limit=10):
        self.calls.append("search")
        return self.records[:limit]

    async def count(self):
        self.calls.append("count")
        return len(self.records)

    async def store(self, key, content, tags=None, importance="medium"):
        self.calls.append("store")
        record = MemoryRecord(key=key, content=content, tags=tags or [], importance=importance)
        self.records.append(record)
        return record


class FailingMemoryStore(MemoryStore):
    async def search(self, query, tags=None, importance_filter=None, limit=10):
        raise ConnectionError("memory backend down")

    async def count(self):
        raise ConnectionError("memory backend down")

    async def store(self, key, content, tags=None, importance="medium"):
        raise ConnectionError("memory backend down")


class RecordingSocialGraph(SocialGraph):
    """Entities by name; names in ``broken`` raise on lookup, names in ``failing_writes`` on record"""

    def __init__(
        self,
        entities: Optional[Dict[str, Dict[str, Any]]] = None,
        broken: Optional[List[str]] = None,
        failing_writes: Optional[List[str]] = None
    ):
        self.entities = entities or {}
        self.broken = broken or []
        self.failing_writes = failing_writes or []
        self.calls: List[str] = []
        self.recorded: List[Dict[str, Any]] = []

    async def get_entity(self, name):
        self.calls.append(f"get:{name}")
        if name in self.broken:
            raise RuntimeError(f"lookup exploded for {name}")
        return self.entities.get(name)

    async def record_interaction(self, entity_name, interaction_type, summary, context, quality):
        self.calls.append(f"record:{entity_name}")
        if entity_name in self.failing_writes:
            raise RuntimeError("write failed")
        interaction = {
            "entity_name": entity_name,
            "interaction_type": interaction_type,
            "summary": summary,
            "context": context,
            "quality": quality,
        }
        self.recorded.append(interaction)
        return interaction

    async def list_recent_interactions(self, entity_name, limit=5):
        self.calls.append(f"history:{entity_name}")
        return [item for item in self.recorded if item["entity_name"] == entity_name][:limit]


class StaticConfiguration(ConfigurationSource):
    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self.values = values or {}

    async def get(self, key, default=None):
        return self.values.get(key, default)


class FailingConfiguration(ConfigurationSource):
    async def get(self, key, default=None):
        raise RuntimeError("configuration store unreachable")


class StaticSessionState(SessionStateProvider):
    def __init__(self, state: Optional[Dict[str, Any]] = None):
        self.state = state

    async def get_current_state(self):
        return self.state


class FailingSessionState(SessionStateProvider):
    async def get_current_state(self):
        raise TimeoutError("session store timed out")
