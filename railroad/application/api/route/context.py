from typing import Dict, List
from fastapi import APIRouter, Depends, HTTPException, Request
import structlog

from railroad.application.api.schema import ContextRequest, ContextResponse, HealthResponse
from railroad.domain.errors import UnknownVariantError
from railroad.domain.pipeline.extractor import extract_response_context, get_personality_directives
from railroad.domain.pipeline.processor import MessageProcessor, ProcessedMessage, summarize_trace
from railroad.domain.pipeline.variants import available_variants

logger = structlog.get_logger(__name__)

router = APIRouter()


def get_processor(request: Request) -> MessageProcessor:
    return request.app.state.processor


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/api/v1/variants")
async def list_variants() -> Dict[str, List[str]]:
    return {"variants": available_variants()}


# Context only, no reply generation
@router.post("/api/v1/context", response_model=ContextResponse)
async def assemble_context(
    body: ContextRequest,
    processor: MessageProcessor = Depends(get_processor)
) -> ContextResponse:
    variant = body.variant or processor.settings.default_variant
    try:
        result = await processor.assemble(body.message, body.seed_context, variant)
    except UnknownVariantError as exc:
        logger.warning("Unknown variant requested", variant=variant)
        raise HTTPException(status_code=422, detail=str(exc))

    return ContextResponse(
        success=result.success,
        variant=variant,
        digest=extract_response_context(result),
        directives=get_personality_directives(result),
        completed_stages=result.completed_stages,
        performed=result.context.operations.performed,
        errors=result.context.errors,
        trace=summarize_trace(result),
        total_execution_time=result.total_execution_time
    )


@router.post("/api/v1/messages/process", response_model=ProcessedMessage)
async def process_message(
    body: ContextRequest,
    processor: MessageProcessor = Depends(get_processor)
) -> ProcessedMessage:
    try:
        return await processor.process(body.message, body.seed_context, body.variant)
    except UnknownVariantError as exc:
        logger.warning("Unknown variant requested", variant=body.variant)
        raise HTTPException(status_code=422, detail=str(exc))
