from typing import Dict, List, Optional
from pydantic import BaseModel, Field
import structlog

from railroad.domain.collaborators import Collaborators
from railroad.domain.models.context import Operations, PipelineResult
from railroad.infrastructure.config.settings import Settings
from railroad.infrastructure.observability.logging import MetricsCollector
from .executor import Pipeline
from .extractor import PersonalityDirectives, extract_response_context, get_personality_directives
from .variants import build_pipeline

logger = structlog.get_logger(__name__)


FALLBACK_RESPONSE = (
    "I understand what you're saying. Let me process this thoughtfully. "
    "(Note: Response generation encountered an issue, but context processing completed successfully.)"
)

RESPONSE_SYSTEM_PROMPT = """Context:
{digest}

Personality guidance:
- Communication tone: {directives.communication_tone}
- Vocabulary style: {directives.vocabulary_style}
- Confidence level: {directives.confidence_level:.2f}
{extra}"""

RICHNESS_WEIGHTS = {
    "success": 0.2,
    "analysis": 0.2,
    "session": 0.2,
    "memory": 0.15,
    "social": 0.15,
    "personality": 0.1,
}


class StageTraceSummary(BaseModel):
    stage: str
    duration_ms: float
    success: bool
    error: Optional[str] = None


class ProcessedMessage(BaseModel):
    """Generated response plus a summary of the context behind it"""
    response: str
    success: bool
    variant: str
    execution_time: float = Field(description="Pipeline execution time in milliseconds")
    stages_completed: List[str] = Field(default_factory=list)
    personality_applied: bool = False
    context_richness: float = Field(ge=0.0, le=1.0)
    directives: PersonalityDirectives
    operations: Operations
    trace: List[StageTraceSummary] = Field(default_factory=list)


def calculate_context_richness(result: PipelineResult) -> float:
    """Weighted share of context sections that carry something, in [0, 1]"""

    context = result.context
    richness = 0.0
    if result.success:
        richness += RICHNESS_WEIGHTS["success"]
    if context.analysis is not None:
        richness += RICHNESS_WEIGHTS["analysis"]
    if context.session_context is not None:
        richness += RICHNESS_WEIGHTS["session"]
    if context.memory_context is not None and context.memory_context.relevant_memories:
        richness += RICHNESS_WEIGHTS["memory"]
    if context.social_context is not None and context.social_context.relationship_dynamics:
        richness += RICHNESS_WEIGHTS["social"]
    if context.personality_context is not None:
        richness += RICHNESS_WEIGHTS["personality"]
    return round(min(1.0, richness), 4)


def summarize_trace(result: PipelineResult) -> List[StageTraceSummary]:
    return [
        StageTraceSummary(
            stage=entry.stage,
            duration_ms=entry.duration_ms,
            success=entry.success,
            error=entry.error
        )
        for entry in result.execution_trace
    ]


def build_response_prompt(
    digest: str,
    directives: PersonalityDirectives,
    seed_context: Optional[str] = None
) -> str:
    extra: List[str] = []
    if directives.relationship_context:
        extra.append(f"- Relationship: {directives.relationship_context}")
    if directives.memory_context:
        extra.append(f"- Memory context: {directives.memory_context}")
    if seed_context:
        extra.append(f"\nAdditional context: {seed_context}")
    return RESPONSE_SYSTEM_PROMPT.format(
        digest=digest or "(no context available)",
        directives=directives,
        extra="\n".join(extra)
    ).strip()


class MessageProcessor:
    """Assembles context through a pipeline variant and generates a reply"""

    def __init__(
        self,
        collaborators: Collaborators,
        settings: Optional[Settings] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.collaborators = collaborators
        self.settings = settings or Settings()
        self.metrics = metrics
        self._pipelines: Dict[str, Pipeline] = {}

    def pipeline_for(self, variant: str) -> Pipeline:
        """Build a variant once and reuse it; raises UnknownVariantError"""
        if variant not in self._pipelines:
            self._pipelines[variant] = build_pipeline(
                variant,
                self.collaborators,
                settings=self.settings,
                metrics=self.metrics
            )
        return self._pipelines[variant]

    async def assemble(
        self,
        message: str,
        seed_context: Optional[str] = None,
        variant: Optional[str] = None
    ) -> PipelineResult:
        """Run a pipeline variant and return its raw result"""
        return await self.pipeline_for(variant or self.settings.default_variant).execute(message, seed_context)

    async def process(
        self,
        message: str,
        seed_context: Optional[str] = None,
        variant: Optional[str] = None
    ) -> ProcessedMessage:
        variant = variant or self.settings.default_variant
        result = await self.assemble(message, seed_context, variant)

        digest = extract_response_context(result)
        directives = get_personality_directives(result)
        response = await self.generate_response(message, digest, directives, seed_context)

        processed = ProcessedMessage(
            response=response,
            success=result.success,
            variant=variant,
            execution_time=result.total_execution_time,
            stages_completed=result.completed_stages,
            personality_applied=result.context.personality_context is not None,
            context_richness=calculate_context_richness(result),
            directives=directives,
            operations=result.context.operations,
            trace=summarize_trace(result),
        )

        logger.info(
            "Message processed",
            variant=variant,
            success=processed.success,
            context_richness=processed.context_richness,
            errors=len(result.context.errors)
        )
        return processed

    async def generate_response(
        self,
        message: str,
        digest: str,
        directives: PersonalityDirectives,
        seed_context: Optional[str] = None
    ) -> str:
        completion = self.collaborators.completion
        if completion is None:
            return FALLBACK_RESPONSE

        try:
            reply = await completion.complete(message, context=build_response_prompt(digest, directives, seed_context))
        except Exception as exc:
            logger.warning("Response generation failed, using fallback", error=str(exc))
            return FALLBACK_RESPONSE

        return reply.text.strip() or FALLBACK_RESPONSE
