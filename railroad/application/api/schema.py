from typing import List, Optional
from pydantic import BaseModel, Field

from railroad.domain.models.context import ErrorRecord
from railroad.domain.pipeline.extractor import PersonalityDirectives
from railroad.domain.pipeline.processor import StageTraceSummary


class ContextRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Message to assemble context for")
    seed_context: Optional[str] = Field(None, description="Extra context supplied by the caller")
    variant: Optional[str] = Field(None, description="Pipeline variant, the configured default when omitted")


class ContextResponse(BaseModel):
    """Assembled context without a generated reply"""
    success: bool
    variant: str
    digest: str
    directives: PersonalityDirectives
    completed_stages: List[str]
    performed: List[str]
    errors: List[ErrorRecord]
    trace: List[StageTraceSummary]
    total_execution_time: float


class HealthResponse(BaseModel):
    status: str = "ok"
