from typing import Dict, Any, Optional
import uuid
import structlog

from railroad.domain.collaborators import SessionStateProvider
from railroad.domain.models.context import Context, MessageAnalysis, SessionContext
from .base_stage import ProcessingStage

logger = structlog.get_logger(__name__)


DEFAULT_MODE = "balanced"
DEFAULT_AWARENESS = "normal"
DEFAULT_COGNITIVE_LOAD = 0.5
DEFAULT_ATTENTION_FOCUS = "general_conversation"

# Upstream state keys accepted for each SessionContext field
STATE_KEYS = {
    "session_id": ("session_id", "sessionId"),
    "mode": ("mode",),
    "awareness_level": ("awareness_level", "awarenessLevel"),
    "cognitive_load": ("cognitive_load", "cognitiveLoad"),
    "attention_focus": ("attention_focus", "attentionFocus"),
    "emotional_tone": ("emotional_tone", "emotionalTone"),
    "learning_state": ("learning_state", "learningState"),
    "duration": ("duration", "session_duration"),
}


def generate_session_id() -> str:
    return f"session-{uuid.uuid4().hex[:8]}"


def map_emotional_tone(emotional_context: str) -> str:
    """Map an analysis emotion label to a session emotional tone"""
    if "positive" in emotional_context or "excited" in emotional_context:
        return "positive"
    if "negative" in emotional_context or "frustrated" in emotional_context:
        return "concerned"
    if "playful" in emotional_context or "humorous" in emotional_context:
        return "playful"
    return "neutral"


def clamp_load(value: Any) -> float:
    try:
        load = float(value)
    except (TypeError, ValueError):
        return DEFAULT_COGNITIVE_LOAD
    if load != load:  # NaN
        return DEFAULT_COGNITIVE_LOAD
    return min(1.0, max(0.0, load))


def pick(upstream: Dict[str, Any], keys) -> Any:
    for key in keys:
        if upstream.get(key) is not None:
            return upstream[key]
    return None


def session_from_state(upstream: Dict[str, Any], analysis: Optional[MessageAnalysis] = None) -> SessionContext:
    """Merge upstream values over defaults; missing values are derived or constant"""

    values = {field: pick(upstream, keys) for field, keys in STATE_KEYS.items()}
    analysis = analysis or MessageAnalysis()

    attention_focus = values["attention_focus"] or (
        analysis.entities_mentioned[0] if analysis.entities_mentioned else DEFAULT_ATTENTION_FOCUS
    )
    learning_state = values["learning_state"]
    if not isinstance(learning_state, str) or not learning_state:
        learning_state = "adaptive" if analysis.requires_insight_storage else "active"

    try:
        duration = max(0.0, float(values["duration"] or 0))
    except (TypeError, ValueError):
        duration = 0.0

    return SessionContext(
        session_id=str(values["session_id"] or generate_session_id()),
        mode=str(values["mode"] or DEFAULT_MODE),
        awareness_level=str(values["awareness_level"] or DEFAULT_AWARENESS),
        cognitive_load=clamp_load(values["cognitive_load"]) if values["cognitive_load"] is not None else DEFAULT_COGNITIVE_LOAD,
        attention_focus=str(attention_focus),
        emotional_tone=str(values["emotional_tone"] or map_emotional_tone(analysis.emotional_context)),
        learning_state=learning_state,
        duration=duration,
        current_state=dict(upstream),
    )


class SessionStateStage(ProcessingStage):
    """Synthesizes the session section from upstream state and the analysis"""

    name = "session-context"

    def __init__(self, provider: SessionStateProvider):
        self.provider = provider

    async def run(self, context: Context) -> Context:
        try:
            upstream = await self.provider.get_current_state()
        except Exception as exc:
            logger.warning("Session state unavailable, using defaults", error=str(exc))
            session = session_from_state({}, context.analysis)
            context = context.with_error(self.name, f"Session state unavailable: {exc}", recoverable=True)
            return self.complete(context, session_context=session)

        session = session_from_state(upstream or {}, context.analysis)
        return self.complete(context, session_context=session)
