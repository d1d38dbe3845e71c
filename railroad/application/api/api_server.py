from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
import structlog

from railroad.application.api.route.context import router as context_router
from railroad.application.bootstrap import build_default_collaborators, seed_known_entities
from railroad.domain.collaborators import Collaborators
from railroad.domain.pipeline.processor import MessageProcessor
from railroad.domain.social.social_graph import InMemorySocialGraph
from railroad.infrastructure.config.settings import Settings, get_settings
from railroad.infrastructure.observability.logging import MetricsCollector, setup_logging

logger = structlog.get_logger(__name__)


def create_app(
    collaborators: Optional[Collaborators] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """Build the HTTP app around one message processor"""

    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format, settings.service_name)
    collaborators = collaborators or build_default_collaborators(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        graph = collaborators.social_graph
        if isinstance(graph, InMemorySocialGraph):
            await seed_known_entities(graph, settings.known_entity_names)
        logger.info("Starting context service", default_variant=settings.default_variant)
        yield
        logger.info("Context service stopped", metrics=app.state.metrics.get_metrics_summary())

    app = FastAPI(title="Context Railroad", lifespan=lifespan)
    app.state.settings = settings
    app.state.metrics = MetricsCollector()
    app.state.processor = MessageProcessor(collaborators, settings, metrics=app.state.metrics)
    app.include_router(context_router)
    return app
