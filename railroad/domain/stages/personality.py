from typing import Dict, List, Any, Optional, Tuple
import structlog

from railroad.domain.collaborators import ConfigurationSource, MemoryStore
from railroad.domain.models.context import (
    Context, LearningPatterns, PersonalityContext, PersonalityState
)
from .base_stage import ProcessingStage

logger = structlog.get_logger(__name__)


INSIGHT_CATEGORIES = [
    "eureka_moment",
    "pattern_weaving",
    "mirror_gazing",
    "knowledge_crystallization",
    "behavior_archaeology",
    "existential_pondering",
]

DEFAULT_VOCABULARY: Dict[str, List[str]] = {
    "priority_levels": ["whisper", "gentle_nudge", "urgent_pulse", "burning_focus"],
    "reflection_depths": ["surface_glance", "thoughtful_dive", "profound_exploration"],
    "intention_statuses": ["pulsing_active", "fulfilled_completion", "gentle_pause", "conscious_release"],
    "intention_durations": ["momentary_focus", "daily_rhythm", "weekly_arc", "eternal_truth"],
    "insight_categories": INSIGHT_CATEGORIES,
}

DEFAULT_LEARNING_PATTERNS = LearningPatterns(
    recent_categories=["mirror_gazing", "pattern_weaving"],
    average_confidence=0.8,
    learning_velocity=0.5,
)

INTENT_MODES = {
    "technical": "analytical",
    "social": "relational",
    "creative": "imaginative",
    "learning": "curious",
    "reflection": "contemplative",
}

RELATIONSHIP_STYLES = (
    ("casual", "casual_friendly"),
    ("technical", "technical_precise"),
    ("playful", "playful_engaging"),
    ("formal", "formal_respectful"),
)

DEFAULT_CONFIDENCE = 0.8
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0
MEMORY_CONFIDENCE_THRESHOLD = 3
MEMORY_CONFIDENCE_BOOST = 0.1
SOCIAL_CONFIDENCE_BOOST = 0.05
MAX_RECENT_INSIGHTS = 10
INSIGHTS_PER_WEEK = 7


def determine_communication_style(context: Context) -> str:
    """Relationship preferences win, otherwise intent and emotion decide"""

    social = context.social_context
    if social is not None and social.relationship_dynamics:
        relationship = social.relationship_dynamics.get("relationship") or {}
        style = relationship.get("communication_style") if isinstance(relationship, dict) else None
        if isinstance(style, dict):
            for flag, label in RELATIONSHIP_STYLES:
                if style.get(flag):
                    return label

    intent = context.analysis.intent if context.analysis else "general"
    emotional_context = context.analysis.emotional_context if context.analysis else "neutral"

    if intent in ("technical", "problem_solving"):
        return "technical_precise"
    if intent == "social" or "playful" in emotional_context:
        return "casual_friendly"
    if intent in ("learning", "reflection"):
        return "thoughtful_exploratory"
    return "adaptive_balanced"


def determine_mode(context: Context) -> str:
    intent = context.analysis.intent if context.analysis else "general"
    return INTENT_MODES.get(intent, "balanced")


def calculate_confidence(context: Context, learning_patterns: LearningPatterns) -> float:
    confidence = learning_patterns.average_confidence
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE

    memory = context.memory_context
    if memory is not None and len(memory.relevant_memories) >= MEMORY_CONFIDENCE_THRESHOLD:
        confidence += MEMORY_CONFIDENCE_BOOST

    if context.social_context is not None and context.social_context.relationship_dynamics:
        confidence += SOCIAL_CONFIDENCE_BOOST

    return min(MAX_CONFIDENCE, max(MIN_CONFIDENCE, confidence))


def determine_engagement(context: Context) -> str:
    emotional_context = context.analysis.emotional_context if context.analysis else "neutral"

    if "excited" in emotional_context or "enthusiastic" in emotional_context:
        return "high"
    if "tired" in emotional_context or "distracted" in emotional_context:
        return "low"

    session = context.session_context
    if session is not None:
        if session.awareness_level == "high":
            return "high"
        if session.cognitive_load > 0.8:
            return "low"
    return "medium"


def determine_formality(communication_style: str) -> str:
    if "formal" in communication_style:
        return "formal"
    if "casual" in communication_style or "playful" in communication_style:
        return "casual"
    return "balanced"


def vocabulary_tone(vocabulary: Dict[str, List[str]]) -> str:
    priorities = vocabulary.get("priority_levels") or []
    if "gentle_nudge" in priorities:
        return "thoughtful"
    if "burning_focus" in priorities:
        return "intense"
    return "balanced"


def build_personality_state(
    context: Context,
    vocabulary: Dict[str, List[str]],
    learning_patterns: LearningPatterns,
    communication_style: str
) -> PersonalityState:
    social = context.social_context
    return PersonalityState(
        mode=determine_mode(context),
        confidence=calculate_confidence(context, learning_patterns),
        engagement=determine_engagement(context),
        formality=determine_formality(communication_style),
        vocabulary_tone=vocabulary_tone(vocabulary),
        learning_state="accelerated" if learning_patterns.learning_velocity > 1 else "steady",
        social_awareness="high" if social is not None and social.active_relationships else "medium",
    )


class PersonalitySynthesisStage(ProcessingStage):
    """Combines every earlier section into communication directives.

    Configuration and insight history are optional inputs: when either
    lookup fails the built-in defaults are used and the stage still returns
    a complete personality section.
    """

    name = "personality-context"

    def __init__(self, configuration: ConfigurationSource, memory_store: Optional[MemoryStore] = None):
        self.configuration = configuration
        self.memory_store = memory_store

    async def run(self, context: Context) -> Context:
        vocabulary, vocabulary_error = await self.load_vocabulary()
        learning_patterns, learning_error = await self.load_learning_patterns()

        for problem in (vocabulary_error, learning_error):
            if problem:
                context = context.with_error(self.name, problem, recoverable=True)

        communication_style = determine_communication_style(context)
        personality = PersonalityContext(
            vocabulary_preferences=vocabulary,
            learning_patterns=learning_patterns,
            communication_style=communication_style,
            current_state=build_personality_state(context, vocabulary, learning_patterns, communication_style),
        )

        logger.debug(
            "Personality synthesized",
            mode=personality.current_state.mode,
            style=communication_style,
            confidence=personality.current_state.confidence
        )
        return self.complete(context, personality_context=personality)

    async def load_vocabulary(self) -> Tuple[Dict[str, List[str]], Optional[str]]:
        """Vocabulary lists from configuration, defaults for anything unusable"""

        vocabulary: Dict[str, List[str]] = {}
        try:
            for name, default in DEFAULT_VOCABULARY.items():
                value = await self.configuration.get(f"personality.{name}", list(default))
                if isinstance(value, list) and value and all(isinstance(item, str) for item in value):
                    vocabulary[name] = list(value)
                else:
                    vocabulary[name] = list(default)
        except Exception as exc:
            logger.warning("Vocabulary configuration unavailable, using defaults", error=str(exc))
            return {name: list(default) for name, default in DEFAULT_VOCABULARY.items()}, \
                f"Vocabulary configuration unavailable: {exc}"
        return vocabulary, None

    async def load_learning_patterns(self) -> Tuple[LearningPatterns, Optional[str]]:
        """Category and confidence statistics over recent insight records"""

        if self.memory_store is None:
            return DEFAULT_LEARNING_PATTERNS.model_copy(deep=True), None

        try:
            insights = await self.memory_store.search("", tags=["insight"], limit=MAX_RECENT_INSIGHTS)
        except Exception as exc:
            logger.warning("Insight history unavailable, using defaults", error=str(exc))
            return DEFAULT_LEARNING_PATTERNS.model_copy(deep=True), f"Insight history unavailable: {exc}"

        categories: List[str] = []
        confidences: List[float] = []
        for insight in list(insights)[:MAX_RECENT_INSIGHTS]:
            category = next((tag for tag in insight.tags if tag in INSIGHT_CATEGORIES), None)
            if category:
                categories.append(category)
            content: Any = insight.content
            if isinstance(content, dict) and isinstance(content.get("confidence"), (int, float)):
                confidences.append(float(content["confidence"]))

        average_confidence = sum(confidences) / len(confidences) if confidences else DEFAULT_CONFIDENCE
        return LearningPatterns(
            recent_categories=categories,
            average_confidence=average_confidence,
            learning_velocity=len(categories) / INSIGHTS_PER_WEEK,
        ), None
