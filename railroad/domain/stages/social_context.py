from typing import Dict, List, Any, Optional
import structlog

from railroad.domain.collaborators import SocialGraph
from railroad.domain.models.context import Context, SocialContext, SocialInsights
from .base_stage import ProcessingStage

logger = structlog.get_logger(__name__)


DEFAULT_INTERACTION_QUALITY = 0.8
POSITIVE_HISTORY_THRESHOLD = 0.7
NEUTRAL_SCORE = 0.5


def as_score(value: Any) -> float:
    """Numeric score from a graph record, neutral when missing or malformed"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return NEUTRAL_SCORE
    return float(value)


def derive_social_insights(
    relationships: List[Dict[str, Any]],
    interactions: List[Dict[str, Any]]
) -> SocialInsights:
    """Suggested approach and interaction patterns for the response generator"""

    insights = SocialInsights(has_active_relationships=bool(relationships))

    if relationships:
        relationship = relationships[0].get("relationship") or {}
        strength = as_score(relationship.get("strength")) if isinstance(relationship, dict) else NEUTRAL_SCORE
        if strength > 0.7:
            insights.suggested_approach = "familiar"
            insights.communication_style = "friendly"
        elif strength > 0.4:
            insights.suggested_approach = "professional"
            insights.communication_style = "respectful"

    if interactions:
        qualities = [as_score(item.get("quality")) for item in interactions]
        if sum(qualities) / len(qualities) > POSITIVE_HISTORY_THRESHOLD:
            insights.interaction_patterns.append("positive_interaction_history")
        types = list(dict.fromkeys(str(item.get("interaction_type")) for item in interactions))
        insights.interaction_patterns.append(f"interaction_types: {', '.join(types)}")

    return insights


class SocialContextStage(ProcessingStage):
    """Loads relationships for mentioned entities and records this interaction.

    Entities are processed independently: a failure for one is recorded on
    the context and the remaining entities still run.
    """

    name = "social-context"

    def __init__(
        self,
        graph: SocialGraph,
        max_entities: int = 3,
        summary_max_length: int = 200,
        recent_interactions_limit: int = 5
    ):
        self.graph = graph
        self.max_entities = max_entities
        self.summary_max_length = summary_max_length
        self.recent_interactions_limit = recent_interactions_limit

    async def run(self, context: Context) -> Context:
        analysis = context.analysis
        if analysis is None or not analysis.requires_social or not analysis.entities_mentioned:
            return self.complete(context, social_context=SocialContext())

        entities = list(dict.fromkeys(name.lower() for name in analysis.entities_mentioned))[:self.max_entities]
        relationships: List[Dict[str, Any]] = []
        interactions: List[Dict[str, Any]] = []
        unknown: List[str] = []
        recorded: List[str] = []
        primary: Optional[str] = None
        dynamics: Optional[Dict[str, Any]] = None

        for entity_name in entities:
            try:
                entity = await self.graph.get_entity(entity_name)
                if entity is None:
                    logger.info("Entity not in social graph", entity=entity_name)
                    unknown.append(entity_name)
                    continue

                await self.graph.record_interaction(
                    entity_name=entity_name,
                    interaction_type="conversation",
                    summary=context.message[:self.summary_max_length],
                    context=context.seed_context or "General conversation",
                    quality=DEFAULT_INTERACTION_QUALITY
                )

                history = await self.graph.list_recent_interactions(
                    entity_name,
                    limit=self.recent_interactions_limit
                )
                # Only fully processed entities reach the section
                relationships.append(entity)
                interactions.extend(history[:self.recent_interactions_limit])
                recorded.append(entity_name)
                if primary is None:
                    primary = entity_name
                    dynamics = entity

            except Exception as exc:
                logger.warning("Social lookup failed for entity", entity=entity_name, error=str(exc))
                context = context.with_error(
                    self.name,
                    f"Failed to process entity '{entity_name}': {exc}",
                    recoverable=True
                )

        return self.complete(
            context,
            social_context=SocialContext(
                active_relationships=relationships,
                recent_interactions=interactions,
                entity_mentioned=primary,
                relationship_dynamics=dynamics,
                unknown_entities=unknown,
                insights=derive_social_insights(relationships, interactions),
            ),
            logs={"social_interactions": [f"Recorded interaction with {name}" for name in recorded]}
        )
