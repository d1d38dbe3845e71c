"""
Tests for the message processor
"""
import json

import pytest

from railroad.domain.collaborators import Collaborators
from railroad.domain.errors import UnknownVariantError
from railroad.domain.models.context import (
    Context, MemoryContext, MemoryRecord, MessageAnalysis, PersonalityContext,
    PipelineResult, SessionContext, SocialContext
)
from railroad.domain.pipeline.processor import (
    FALLBACK_RESPONSE, MessageProcessor, build_response_prompt, calculate_context_richness
)
from railroad.domain.pipeline.extractor import PersonalityDirectives
from railroad.infrastructure.observability.logging import MetricsCollector

from fakes import FailingCompletion, FakeCompletion


def with_completion(collaborators: Collaborators, completion) -> Collaborators:
    return Collaborators(
        memory_store=collaborators.memory_store,
        social_graph=collaborators.social_graph,
        configuration=collaborators.configuration,
        session_state=collaborators.session_state,
        completion=completion,
    )


def test_richness_of_full_and_empty_results():
    full = Context(
        message="hi",
        analysis=MessageAnalysis(),
        session_context=SessionContext(session_id="s"),
        memory_context=MemoryContext(relevant_memories=[MemoryRecord(key="k")]),
        social_context=SocialContext(relationship_dynamics={"relationship": {}}),
        personality_context=PersonalityContext(),
    )

    assert calculate_context_richness(PipelineResult(success=True, context=full)) == 1.0
    assert calculate_context_richness(PipelineResult(success=False, context=Context(message="hi"))) == 0.0


def test_richness_ignores_empty_memory_and_social_sections():
    context = Context(
        message="hi",
        analysis=MessageAnalysis(),
        memory_context=MemoryContext(),
        social_context=SocialContext(),
    )

    assert calculate_context_richness(PipelineResult(success=True, context=context)) == pytest.approx(0.4)


@pytest.mark.asyncio
async def test_process_without_completion_uses_fallback_reply(collaborators, settings):
    await collaborators.social_graph.add_entity("andy", relationship={"strength": 0.8})
    processor = MessageProcessor(collaborators, settings)

    processed = await processor.process("remember our project, Andy")

    assert processed.response == FALLBACK_RESPONSE
    assert processed.success is True
    assert processed.variant == "default"
    assert processed.stages_completed == [
        "message-analysis", "session-context", "memory-context", "social-context", "personality-context"
    ]
    assert processed.personality_applied is True
    assert processed.context_richness == pytest.approx(0.85)
    assert processed.directives.relationship_context == "Active relationship with andy"
    assert processed.operations.social_interactions == ["Recorded interaction with andy"]
    assert [entry.stage for entry in processed.trace] == processed.stages_completed
    assert all(entry.duration_ms >= 0 for entry in processed.trace)


@pytest.mark.asyncio
async def test_process_uses_completion_for_analysis_and_reply(collaborators, settings):
    completion = FakeCompletion(
        analysis=json.dumps({"intent": "social", "entities_mentioned": [], "requires_social": False}),
        reply="  Nice to hear from you!  ",
    )
    processor = MessageProcessor(with_completion(collaborators, completion), settings)

    processed = await processor.process("hey there", seed_context="evening chat", variant="lightweight")

    assert processed.response == "Nice to hear from you!"
    assert processed.variant == "lightweight"
    assert processed.directives.communication_tone == "casual_friendly"
    assert len(completion.prompts) == 2
    assert completion.prompts[1] == "hey there"


@pytest.mark.asyncio
async def test_process_falls_back_when_completion_fails(collaborators, settings):
    processor = MessageProcessor(with_completion(collaborators, FailingCompletion()), settings)

    processed = await processor.process("hello")

    assert processed.response == FALLBACK_RESPONSE
    assert processed.success is True


@pytest.mark.asyncio
async def test_unknown_variant_is_rejected(collaborators, settings):
    processor = MessageProcessor(collaborators, settings)

    with pytest.raises(UnknownVariantError):
        await processor.process("hello", variant="express")


def test_pipelines_are_built_once_per_variant(collaborators, settings):
    processor = MessageProcessor(collaborators, settings)

    assert processor.pipeline_for("default") is processor.pipeline_for("default")
    assert processor.pipeline_for("default") is not processor.pipeline_for("lightweight")


@pytest.mark.asyncio
async def test_metrics_are_collected_per_stage(collaborators, settings):
    metrics = MetricsCollector()
    processor = MessageProcessor(collaborators, settings, metrics=metrics)

    await processor.process("hello", variant="lightweight")

    summary = metrics.get_metrics_summary()
    assert {key for key in summary if key.startswith("latency.")} == {
        "latency.stage.message-analysis",
        "latency.stage.session-context",
        "latency.stage.personality-context",
    }
    assert summary["pipeline.lightweight.runs"] == 1


def test_response_prompt_lists_directives():
    directives = PersonalityDirectives(
        communication_tone="casual_friendly",
        relationship_context="Active relationship with andy",
        memory_context="2 relevant memories",
    )

    prompt = build_response_prompt("Intent: social", directives, seed_context="evening chat")

    assert prompt.startswith("Context:\nIntent: social")
    assert "- Communication tone: casual_friendly" in prompt
    assert "- Confidence level: 0.80" in prompt
    assert "- Relationship: Active relationship with andy" in prompt
    assert "- Memory context: 2 relevant memories" in prompt
    assert prompt.endswith("Additional context: evening chat")
