from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence
import uuid
import structlog

from railroad.domain.errors import ContextRegressionError
from railroad.domain.models.context import Context, ExecutionTraceEntry, PipelineResult, utcnow
from railroad.domain.stages.base_stage import ProcessingStage
from railroad.infrastructure.observability.logging import MetricsCollector, PipelineLogger

logger = structlog.get_logger(__name__)
pipeline_logger = PipelineLogger(__name__)

StageRunner = Callable[[Context], Awaitable[Context]]


@dataclass(frozen=True)
class StageDescriptor:
    """One named entry in a pipeline's ordered stage list"""
    name: str
    run: StageRunner
    required: bool = False

    @classmethod
    def for_stage(cls, stage: ProcessingStage, required: bool) -> "StageDescriptor":
        return cls(name=stage.name, run=stage.run, required=required)


class Pipeline:
    """Runs an ordered stage list against a fresh context.

    Execution is best-effort: a failing stage is recorded and skipped, the
    context it was given flows on unchanged, and later stages still run.
    A failing required stage only flips ``PipelineResult.success``.
    """

    def __init__(
        self,
        stages: Sequence[StageDescriptor],
        name: str = "pipeline",
        clock: Callable = utcnow,
        metrics: Optional[MetricsCollector] = None
    ):
        if not stages:
            raise ValueError("A pipeline needs at least one stage")

        names = [stage.name for stage in stages]
        duplicates = sorted({stage_name for stage_name in names if names.count(stage_name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate stage names: {duplicates}")

        self.stages: List[StageDescriptor] = list(stages)
        self.name = name
        self.clock = clock
        self.metrics = metrics

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    async def execute(self, message: str, seed_context: Optional[str] = None) -> PipelineResult:
        """Build a context for ``message`` and thread it through every stage"""

        context = Context(message=message, seed_context=seed_context, timestamp=self.clock())
        return await self.run(context)

    async def run(self, context: Context) -> PipelineResult:
        """Thread an existing context through every stage"""

        trace: List[ExecutionTraceEntry] = []
        has_required_failure = False

        with structlog.contextvars.bound_contextvars(run_id=uuid.uuid4().hex[:12], pipeline=self.name):
            logger.info("Starting pipeline", stages=self.stage_names)

            for stage in self.stages:
                start_time = self.clock()
                try:
                    result = await stage.run(context.model_copy(deep=True))
                    self._check_result(stage.name, context, result)
                except Exception as exc:
                    end_time = self.clock()
                    message = str(exc) or exc.__class__.__name__
                    trace.append(ExecutionTraceEntry(
                        stage=stage.name,
                        start_time=start_time,
                        end_time=end_time,
                        success=False,
                        error=message
                    ))
                    context = context.with_error(stage.name, message, recoverable=not stage.required)
                    if stage.required:
                        has_required_failure = True
                    self._record(trace[-1], stage.required)
                    continue

                end_time = self.clock()
                context = result
                trace.append(ExecutionTraceEntry(
                    stage=stage.name,
                    start_time=start_time,
                    end_time=end_time,
                    success=True
                ))
                self._record(trace[-1], stage.required)

            total_execution_time = (trace[-1].end_time - trace[0].start_time).total_seconds() * 1000
            pipeline_result = PipelineResult(
                success=not has_required_failure,
                context=context,
                execution_trace=trace,
                total_execution_time=total_execution_time
            )

            pipeline_logger.log_pipeline_completed(
                stages=len(trace),
                success=pipeline_result.success,
                total_execution_time_ms=total_execution_time,
                failed_stages=pipeline_result.failed_stages
            )
            if self.metrics is not None:
                self.metrics.increment_counter(
                    f"pipeline.{self.name}.runs",
                    tags={"success": str(pipeline_result.success).lower()}
                )

        return pipeline_result

    def _check_result(self, stage_name: str, before: Context, result: object) -> None:
        if not isinstance(result, Context):
            raise TypeError(f"Stage '{stage_name}' returned {type(result).__name__}, expected Context")

        problems = result.regressions_from(before)
        if problems:
            raise ContextRegressionError(stage_name, problems)

    def _record(self, entry: ExecutionTraceEntry, required: bool) -> None:
        pipeline_logger.log_stage_execution(
            stage=entry.stage,
            required=required,
            duration_ms=entry.duration_ms,
            success=entry.success,
            error=entry.error
        )
        if self.metrics is not None:
            self.metrics.record_latency(
                f"stage.{entry.stage}",
                entry.duration_ms,
                tags={"success": str(entry.success).lower()}
            )
            if not entry.success:
                self.metrics.increment_counter(f"stage.{entry.stage}.failures")
