from typing import Dict, List, Any, Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone


SECTION_FIELDS = (
    "analysis",
    "session_context",
    "memory_context",
    "social_context",
    "personality_context",
)

OPERATION_LOG_FIELDS = (
    "performed",
    "insights_generated",
    "memories_accessed",
    "social_interactions",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageAnalysis(BaseModel):
    """Intent classification of the triggering message"""
    intent: str = Field(default="general", description="Primary intent label")
    operations: List[str] = Field(default_factory=lambda: ["basic_response"])
    entities_mentioned: List[str] = Field(default_factory=list)
    emotional_context: str = Field(default="neutral")
    requires_memory: bool = False
    requires_social: bool = False
    requires_insight_storage: bool = False


class SessionContext(BaseModel):
    """Synthesized state of the current session"""
    session_id: str
    mode: str = "balanced"
    awareness_level: str = "normal"
    cognitive_load: float = Field(default=0.5, ge=0.0, le=1.0)
    attention_focus: str = "general_conversation"
    emotional_tone: str = "neutral"
    learning_state: str = "active"
    duration: float = Field(default=0.0, description="Elapsed session time in milliseconds")
    current_state: Dict[str, Any] = Field(default_factory=dict, description="Raw upstream state")


class MemoryRecord(BaseModel):
    """A single record returned by the memory capability"""
    key: str
    content: Any = None
    tags: List[str] = Field(default_factory=list)
    importance: str = "medium"
    stored_at: datetime = Field(default_factory=utcnow)
    score: float = 0.0


class MemoryContext(BaseModel):
    """Memory recall contributed by the memory retriever"""
    relevant_memories: List[MemoryRecord] = Field(default_factory=list)
    total_memories: int = 0
    recent_activity: List[MemoryRecord] = Field(default_factory=list)
    search_query: Optional[str] = None
    insights: List[str] = Field(default_factory=list)


class SocialInsights(BaseModel):
    """Relationship heuristics derived from the social section"""
    has_active_relationships: bool = False
    suggested_approach: str = "general"
    communication_style: str = "adaptive"
    interaction_patterns: List[str] = Field(default_factory=list)


class SocialContext(BaseModel):
    """Relationships and interaction history for mentioned entities"""
    active_relationships: List[Dict[str, Any]] = Field(default_factory=list)
    recent_interactions: List[Dict[str, Any]] = Field(default_factory=list)
    entity_mentioned: Optional[str] = None
    relationship_dynamics: Optional[Dict[str, Any]] = None
    unknown_entities: List[str] = Field(default_factory=list)
    insights: SocialInsights = Field(default_factory=SocialInsights)


class LearningPatterns(BaseModel):
    """Statistics over recently stored insights"""
    recent_categories: List[str] = Field(default_factory=list)
    average_confidence: float = 0.8
    learning_velocity: float = 0.5


class PersonalityState(BaseModel):
    """Current personality bundle handed to the response generator"""
    mode: str = "balanced"
    confidence: float = Field(default=0.8, ge=0.1, le=1.0)
    engagement: str = "medium"
    formality: str = "balanced"
    vocabulary_tone: str = "balanced"
    learning_state: str = "steady"
    social_awareness: str = "medium"


class PersonalityContext(BaseModel):
    """Personality directives synthesized from every other section"""
    vocabulary_preferences: Dict[str, List[str]] = Field(default_factory=dict)
    learning_patterns: LearningPatterns = Field(default_factory=LearningPatterns)
    communication_style: str = "adaptive"
    current_state: PersonalityState = Field(default_factory=PersonalityState)


class Operations(BaseModel):
    """Business-level log reported by the stages themselves"""
    performed: List[str] = Field(default_factory=list)
    insights_generated: List[str] = Field(default_factory=list)
    memories_accessed: List[str] = Field(default_factory=list)
    social_interactions: List[str] = Field(default_factory=list)
    consciousness_updates: Dict[str, Any] = Field(default_factory=dict)


class ErrorRecord(BaseModel):
    """One failure recorded against the context"""
    stage: str
    message: str
    recoverable: bool


class Context(BaseModel):
    """Accumulating record threaded through every stage of one pipeline run.

    Stages never mutate a context in place; they derive a new one with
    ``evolve``, ``with_operation`` or ``with_error``. Sections only ever get
    added, and ``operations``/``errors`` only ever grow.
    """
    message: str = Field(description="Triggering message")
    seed_context: Optional[str] = Field(None, description="Caller supplied extra context")
    timestamp: datetime = Field(default_factory=utcnow)
    analysis: Optional[MessageAnalysis] = None
    session_context: Optional[SessionContext] = None
    memory_context: Optional[MemoryContext] = None
    social_context: Optional[SocialContext] = None
    personality_context: Optional[PersonalityContext] = None
    operations: Operations = Field(default_factory=Operations)
    errors: List[ErrorRecord] = Field(default_factory=list)

    def evolve(self, **updates: Any) -> "Context":
        """Return a copy with the given fields replaced"""
        unknown = set(updates) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown context fields: {sorted(unknown)}")
        return self.model_copy(deep=True, update=updates)

    def with_operation(self, stage: str, **logs: List[str]) -> "Context":
        """Return a copy with ``stage`` appended to the performed log.

        Extra keyword lists are appended to the matching operation log,
        e.g. ``memories_accessed=["key-1"]``.
        """
        operations = self.operations.model_copy(deep=True)
        operations.performed.append(stage)
        for name, entries in logs.items():
            if name not in OPERATION_LOG_FIELDS:
                raise ValueError(f"Unknown operation log: {name}")
            getattr(operations, name).extend(entries)
        return self.evolve(operations=operations)

    def with_update(self, key: str, value: Any) -> "Context":
        """Return a copy with a consciousness update recorded under ``key``"""
        operations = self.operations.model_copy(deep=True)
        operations.consciousness_updates[key] = value
        return self.evolve(operations=operations)

    def with_error(self, stage: str, message: str, recoverable: bool) -> "Context":
        """Return a copy with one error record appended"""
        errors = [error.model_copy() for error in self.errors]
        errors.append(ErrorRecord(stage=stage, message=message, recoverable=recoverable))
        return self.evolve(errors=errors)

    @property
    def recoverable_errors(self) -> List[ErrorRecord]:
        return [error for error in self.errors if error.recoverable]

    def regressions_from(self, previous: "Context") -> List[str]:
        """List every way this context fails to extend ``previous``.

        An empty list means this context is a superset of ``previous``.
        """
        problems: List[str] = []

        for name in ("message", "seed_context", "timestamp"):
            if getattr(self, name) != getattr(previous, name):
                problems.append(f"{name} changed")

        for name in SECTION_FIELDS:
            before = getattr(previous, name)
            if before is None:
                continue
            after = getattr(self, name)
            if after is None:
                problems.append(f"{name} removed")
            elif after != before:
                problems.append(f"{name} changed")

        for name in OPERATION_LOG_FIELDS:
            before_log = getattr(previous.operations, name)
            after_log = getattr(self.operations, name)
            if after_log[:len(before_log)] != before_log:
                problems.append(f"operations.{name} shrank or was rewritten")

        missing_updates = set(previous.operations.consciousness_updates) - set(self.operations.consciousness_updates)
        if missing_updates:
            problems.append(f"operations.consciousness_updates lost {sorted(missing_updates)}")

        if self.errors[:len(previous.errors)] != previous.errors:
            problems.append("errors shrank or were rewritten")

        return problems


class ExecutionTraceEntry(BaseModel):
    """Executor-side record of one attempted stage"""
    stage: str
    start_time: datetime
    end_time: datetime
    success: bool
    error: Optional[str] = None

    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time).total_seconds() * 1000


class PipelineResult(BaseModel):
    """Outcome of one pipeline execution"""
    success: bool
    context: Context
    execution_trace: List[ExecutionTraceEntry] = Field(default_factory=list)
    total_execution_time: float = Field(0.0, description="Milliseconds from first stage start to last stage end")

    @property
    def completed_stages(self) -> List[str]:
        """Stages the executor saw return normally, in execution order"""
        return [entry.stage for entry in self.execution_trace if entry.success]

    @property
    def failed_stages(self) -> List[str]:
        return [entry.stage for entry in self.execution_trace if not entry.success]
