from typing import List, Optional
from pydantic import BaseModel, Field

from railroad.domain.models.context import PipelineResult


DEFAULT_VOCABULARY_STYLE = "balanced"
DEFAULT_COMMUNICATION_TONE = "adaptive"
DEFAULT_CONFIDENCE = 0.8
# Second priority level ("gentle_nudge" in the default vocabulary)
VOCABULARY_STYLE_INDEX = 1


class PersonalityDirectives(BaseModel):
    """Compact personality bundle for the response generator"""
    vocabulary_style: str = DEFAULT_VOCABULARY_STYLE
    communication_tone: str = DEFAULT_COMMUNICATION_TONE
    confidence_level: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)
    relationship_context: Optional[str] = None
    memory_context: Optional[str] = None


def extract_response_context(result: PipelineResult) -> str:
    """Multi-line digest of a finished context, one fact per line"""

    context = result.context
    lines: List[str] = []

    if context.operations.performed:
        lines.append(f"Operations: {', '.join(context.operations.performed)}")

    analysis = context.analysis
    if analysis is not None:
        lines.append(f"Intent: {analysis.intent}")
        if analysis.emotional_context:
            lines.append(f"Emotional context: {analysis.emotional_context}")
        if analysis.entities_mentioned:
            lines.append(f"Entities: {', '.join(analysis.entities_mentioned)}")

    if context.session_context is not None:
        lines.append(f"Session mode: {context.session_context.mode}")
        lines.append(f"Attention: {context.session_context.attention_focus}")

    personality = context.personality_context
    if personality is not None:
        state = personality.current_state
        lines.append(f"Personality: {state.mode} mode, {state.engagement} engagement")
        lines.append(f"Communication style: {personality.communication_style}")

    if context.memory_context is not None and context.memory_context.relevant_memories:
        lines.append(f"Relevant memories: {len(context.memory_context.relevant_memories)} found")

    if context.social_context is not None and context.social_context.relationship_dynamics:
        lines.append("Active relationship context available")

    recoverable = context.recoverable_errors
    if recoverable:
        lines.append(f"Note: {len(recoverable)} recoverable processing issues")

    return "\n".join(lines)


def get_personality_directives(result: PipelineResult) -> PersonalityDirectives:
    """Directive bundle with fixed defaults for any missing section"""

    context = result.context
    directives = PersonalityDirectives()

    personality = context.personality_context
    if personality is not None:
        priorities = personality.vocabulary_preferences.get("priority_levels") or []
        if len(priorities) > VOCABULARY_STYLE_INDEX and priorities[VOCABULARY_STYLE_INDEX]:
            directives.vocabulary_style = priorities[VOCABULARY_STYLE_INDEX]
        if personality.communication_style:
            directives.communication_tone = personality.communication_style
        if personality.current_state.confidence:
            directives.confidence_level = personality.current_state.confidence

    social = context.social_context
    if social is not None and social.relationship_dynamics:
        directives.relationship_context = f"Active relationship with {social.entity_mentioned}"

    memory = context.memory_context
    if memory is not None and memory.relevant_memories:
        directives.memory_context = f"{len(memory.relevant_memories)} relevant memories"

    return directives
