from typing import Callable, Dict, List, Optional
import structlog

from railroad.domain.collaborators import Collaborators
from railroad.domain.errors import UnknownVariantError
from railroad.domain.stages.intent_classifier import (
    IntentClassificationStage, KeywordIntentClassifier, LLMIntentClassifier
)
from railroad.domain.stages.memory_retriever import MemoryRetrievalStage
from railroad.domain.stages.personality import PersonalitySynthesisStage
from railroad.domain.stages.session_state import SessionStateStage
from railroad.domain.stages.social_context import SocialContextStage
from railroad.infrastructure.config.settings import Settings
from railroad.infrastructure.observability.logging import MetricsCollector
from .executor import Pipeline, StageDescriptor

logger = structlog.get_logger(__name__)


class StageFactory:
    """Builds configured stage instances from the injected collaborators"""

    def __init__(self, collaborators: Collaborators, settings: Settings):
        self.collaborators = collaborators
        self.settings = settings

    def classifier(self) -> IntentClassificationStage:
        primary = None
        if self.collaborators.completion is not None:
            primary = LLMIntentClassifier(self.collaborators.completion)
        return IntentClassificationStage(
            primary=primary,
            fallback=KeywordIntentClassifier(self.settings.known_entity_names),
            state_provider=self.collaborators.session_state
        )

    def session(self) -> SessionStateStage:
        return SessionStateStage(self.collaborators.session_state)

    def memory(self) -> MemoryRetrievalStage:
        return MemoryRetrievalStage(
            self.collaborators.memory_store,
            max_records=self.settings.max_relevant_memories,
            recent_activity_limit=self.settings.recent_activity_limit
        )

    def social(self) -> SocialContextStage:
        return SocialContextStage(
            self.collaborators.social_graph,
            max_entities=self.settings.max_social_entities,
            summary_max_length=self.settings.interaction_summary_max_length,
            recent_interactions_limit=self.settings.recent_interactions_limit
        )

    def personality(self) -> PersonalitySynthesisStage:
        return PersonalitySynthesisStage(
            self.collaborators.configuration,
            self.collaborators.memory_store
        )


def default_stages(factory: StageFactory) -> List[StageDescriptor]:
    """Every stage, all required"""
    return [
        StageDescriptor.for_stage(factory.classifier(), required=True),
        StageDescriptor.for_stage(factory.session(), required=True),
        StageDescriptor.for_stage(factory.memory(), required=True),
        StageDescriptor.for_stage(factory.social(), required=True),
        StageDescriptor.for_stage(factory.personality(), required=True),
    ]


def lightweight_stages(factory: StageFactory) -> List[StageDescriptor]:
    """Classification, session and personality only"""
    return [
        StageDescriptor.for_stage(factory.classifier(), required=True),
        StageDescriptor.for_stage(factory.session(), required=True),
        StageDescriptor.for_stage(factory.personality(), required=True),
    ]


def memory_focused_stages(factory: StageFactory) -> List[StageDescriptor]:
    """Memory recall and session state are required, social context is optional"""
    return [
        StageDescriptor.for_stage(factory.classifier(), required=True),
        StageDescriptor.for_stage(factory.session(), required=True),
        StageDescriptor.for_stage(factory.memory(), required=True),
        StageDescriptor.for_stage(factory.social(), required=False),
        StageDescriptor.for_stage(factory.personality(), required=False),
    ]


def social_focused_stages(factory: StageFactory) -> List[StageDescriptor]:
    """Social context and session state are required, memory recall is optional"""
    return [
        StageDescriptor.for_stage(factory.classifier(), required=True),
        StageDescriptor.for_stage(factory.session(), required=True),
        StageDescriptor.for_stage(factory.social(), required=True),
        StageDescriptor.for_stage(factory.memory(), required=False),
        StageDescriptor.for_stage(factory.personality(), required=False),
    ]


VARIANTS: Dict[str, Callable[[StageFactory], List[StageDescriptor]]] = {
    "default": default_stages,
    "lightweight": lightweight_stages,
    "memory-focused": memory_focused_stages,
    "social-focused": social_focused_stages,
}


def available_variants() -> List[str]:
    return list(VARIANTS)


def build_stages(
    variant: str,
    collaborators: Collaborators,
    settings: Optional[Settings] = None
) -> List[StageDescriptor]:
    """Stage list for a named variant; the classifier always leads and is required"""

    builder = VARIANTS.get(variant)
    if builder is None:
        raise UnknownVariantError(variant, available_variants())

    stages = builder(StageFactory(collaborators, settings or Settings()))
    first = stages[0]
    if first.name != IntentClassificationStage.name or not first.required:
        raise ValueError(f"Variant '{variant}' must start with a required message classifier")
    return stages


def build_pipeline(
    variant: str,
    collaborators: Collaborators,
    settings: Optional[Settings] = None,
    metrics: Optional[MetricsCollector] = None
) -> Pipeline:
    """Construct a ready-to-run pipeline for a named variant"""

    stages = build_stages(variant, collaborators, settings)
    logger.debug("Pipeline built", variant=variant, stages=[stage.name for stage in stages])
    return Pipeline(stages, name=variant, metrics=metrics)
