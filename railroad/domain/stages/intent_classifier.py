from abc import ABC, abstractmethod
from typing import Dict, List, Any, Optional, Sequence
import json
import re
import structlog

from railroad.domain.collaborators import CompletionService, SessionStateProvider
from railroad.domain.errors import ClassificationError
from railroad.domain.models.context import Context, MessageAnalysis, SessionContext
from .base_stage import ProcessingStage
from .session_state import session_from_state

logger = structlog.get_logger(__name__)


DEFAULT_KNOWN_NAMES = ("andy", "echo", "claude")

MEMORY_KEYWORDS = ("remember", "recall")
INSIGHT_KEYWORDS = ("think", "realize")

EMOTION_KEYWORDS = {
    "excited": ("excited", "amazing", "great"),
    "frustrated": ("frustrated", "confused", "stuck"),
    "curious": ("curious", "interested", "wondering"),
}

ANALYSIS_PROMPT = """Analyze this message to understand what context operations might be needed:

Message: "{message}"
{seed}{state}
Determine:
1. The primary intent (information, support, learning, reflection, social, technical, casual, etc.)
2. What operations might be needed (memory retrieval, insight storage, social recording, etc.)
3. Any people/entities mentioned
4. Emotional context (neutral, excited, frustrated, thoughtful, playful, etc.)
5. Whether this requires accessing memories, social context, or storing insights

Respond with a JSON object with these fields:
- intent: string
- operations: string[]
- entities_mentioned: string[]
- emotional_context: string
- requires_memory: boolean
- requires_social: boolean
- requires_insight_storage: boolean
"""

FENCED_JSON = re.compile(r"```(?:json)?\s*(\{.*\})\s*```", re.DOTALL)


class IntentClassifier(ABC):
    """Strategy that turns a message into a MessageAnalysis"""

    @abstractmethod
    async def classify(
        self,
        message: str,
        seed_context: Optional[str] = None,
        session: Optional[SessionContext] = None
    ) -> MessageAnalysis:
        """Classify a message; may raise ClassificationError"""
        pass


class KeywordIntentClassifier(IntentClassifier):
    """Small-vocabulary substring matcher used when no model is reachable"""

    def __init__(self, known_names: Sequence[str] = DEFAULT_KNOWN_NAMES):
        self.known_names = [name.lower() for name in known_names]

    async def classify(
        self,
        message: str,
        seed_context: Optional[str] = None,
        session: Optional[SessionContext] = None
    ) -> MessageAnalysis:
        return self.analyze(message)

    def analyze(self, message: str) -> MessageAnalysis:
        lowered = message.lower()
        entities = self.extract_mentions(lowered)

        return MessageAnalysis(
            intent="general",
            operations=["basic_response"],
            entities_mentioned=entities,
            emotional_context=self.detect_emotion(lowered),
            requires_memory=any(word in lowered for word in MEMORY_KEYWORDS),
            requires_social=len(entities) > 0,
            requires_insight_storage=any(word in lowered for word in INSIGHT_KEYWORDS),
        )

    def extract_mentions(self, lowered: str) -> List[str]:
        return [name for name in self.known_names if name in lowered]

    @staticmethod
    def detect_emotion(lowered: str) -> str:
        for label, keywords in EMOTION_KEYWORDS.items():
            if any(word in lowered for word in keywords):
                return label
        return "neutral"


class LLMIntentClassifier(IntentClassifier):
    """Classifies messages by asking the completion capability for JSON"""

    def __init__(self, completion: CompletionService):
        self.completion = completion

    async def classify(
        self,
        message: str,
        seed_context: Optional[str] = None,
        session: Optional[SessionContext] = None
    ) -> MessageAnalysis:
        prompt = build_analysis_prompt(message, seed_context, session)
        response = await self.completion.complete(prompt, context="Message analysis for context routing")
        return parse_analysis(response.text)


def build_analysis_prompt(
    message: str,
    seed_context: Optional[str] = None,
    session: Optional[SessionContext] = None
) -> str:
    seed = f'Context: "{seed_context}"\n' if seed_context else ""
    state = ""
    if session is not None:
        state = (
            f"Current state: mode={session.mode}, awareness={session.awareness_level}, "
            f"cognitive_load={session.cognitive_load:.2f}, focus={session.attention_focus}\n"
        )
    return ANALYSIS_PROMPT.format(message=message, seed=seed, state=state)


def parse_analysis(text: str) -> MessageAnalysis:
    """Parse a model reply into a fully populated analysis"""

    payload = text.strip()
    fenced = FENCED_JSON.search(payload)
    if fenced:
        payload = fenced.group(1)

    try:
        result: Dict[str, Any] = json.loads(payload)
    except ValueError as exc:
        raise ClassificationError(f"Classifier reply is not JSON: {exc}") from exc

    if not isinstance(result, dict):
        raise ClassificationError("Classifier reply is not a JSON object")

    operations = result.get("operations") or ["basic_response"]
    entities = result.get("entities_mentioned") or []
    if not isinstance(operations, list) or not isinstance(entities, list):
        raise ClassificationError("Classifier reply has malformed lists")

    return MessageAnalysis(
        intent=str(result.get("intent") or "general"),
        operations=[str(item) for item in operations],
        entities_mentioned=[str(item).lower() for item in entities],
        emotional_context=str(result.get("emotional_context") or "neutral"),
        requires_memory=bool(result.get("requires_memory")),
        requires_social=bool(result.get("requires_social")),
        requires_insight_storage=bool(result.get("requires_insight_storage")),
    )


class IntentClassificationStage(ProcessingStage):
    """Classifies the message; always yields an analysis section.

    When a state provider is given, the upstream session state is passed to
    the primary classifier as prior state. That lookup is best-effort; the
    session stage reports unavailable state.
    """

    name = "message-analysis"

    def __init__(
        self,
        primary: Optional[IntentClassifier] = None,
        fallback: Optional[KeywordIntentClassifier] = None,
        state_provider: Optional[SessionStateProvider] = None
    ):
        self.primary = primary
        self.fallback = fallback or KeywordIntentClassifier()
        self.state_provider = state_provider

    async def run(self, context: Context) -> Context:
        analysis = None

        if self.primary is not None:
            try:
                analysis = await self.primary.classify(
                    context.message,
                    context.seed_context,
                    await self.prior_session(context)
                )
            except Exception as exc:
                logger.warning("Primary classifier failed, using keyword fallback", error=str(exc))

        if analysis is None:
            analysis = await self.fallback.classify(context.message, context.seed_context)

        logger.debug("Message analysed", intent=analysis.intent, entities=analysis.entities_mentioned)
        return self.complete(context, analysis=analysis)

    async def prior_session(self, context: Context) -> Optional[SessionContext]:
        if context.session_context is not None:
            return context.session_context
        if self.state_provider is None:
            return None

        try:
            upstream = await self.state_provider.get_current_state()
        except Exception as exc:
            logger.debug("Prior session state unavailable", error=str(exc))
            return None

        if not isinstance(upstream, dict) or not upstream:
            return None
        return session_from_state(upstream)
