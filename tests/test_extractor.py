"""
Tests for the result extractor
"""
from railroad.domain.models.context import (
    Context, MemoryContext, MemoryRecord, MessageAnalysis, PersonalityContext,
    PersonalityState, PipelineResult, SessionContext, SocialContext
)
from railroad.domain.pipeline.extractor import extract_response_context, get_personality_directives


def full_result() -> PipelineResult:
    context = Context(
        message="remember our project, Andy",
        analysis=MessageAnalysis(
            intent="technical",
            entities_mentioned=["andy"],
            emotional_context="focused",
        ),
        session_context=SessionContext(session_id="session-1", mode="analytical", attention_focus="andy"),
        memory_context=MemoryContext(relevant_memories=[
            MemoryRecord(key="one"), MemoryRecord(key="two"), MemoryRecord(key="three"),
        ]),
        social_context=SocialContext(entity_mentioned="andy", relationship_dynamics={"relationship": {}}),
        personality_context=PersonalityContext(
            vocabulary_preferences={"priority_levels": ["whisper", "gentle_nudge", "urgent_pulse"]},
            communication_style="technical_precise",
            current_state=PersonalityState(mode="analytical", engagement="high", confidence=0.85),
        ),
    )
    context = context.with_operation("message-analysis").with_operation("session-context")
    context = context.with_error("memory-context", "slow", recoverable=True)
    return PipelineResult(success=True, context=context)


def test_digest_lists_every_available_section():
    digest = extract_response_context(full_result())
    lines = digest.split("\n")

    assert lines[0] == "Operations: message-analysis, session-context"
    assert "Intent: technical" in lines
    assert "Emotional context: focused" in lines
    assert "Entities: andy" in lines
    assert "Session mode: analytical" in lines
    assert "Attention: andy" in lines
    assert "Personality: analytical mode, high engagement" in lines
    assert "Communication style: technical_precise" in lines
    assert "Relevant memories: 3 found" in lines
    assert "Active relationship context available" in lines
    assert lines[-1] == "Note: 1 recoverable processing issues"


def test_digest_of_bare_context_is_empty():
    assert extract_response_context(PipelineResult(success=False, context=Context(message="hi"))) == ""


def test_digest_ignores_unrecoverable_errors():
    context = Context(message="hi").with_error("message-analysis", "boom", recoverable=False)

    assert "Note:" not in extract_response_context(PipelineResult(success=False, context=context))


def test_directives_from_full_context():
    directives = get_personality_directives(full_result())

    assert directives.vocabulary_style == "gentle_nudge"
    assert directives.communication_tone == "technical_precise"
    assert directives.confidence_level == 0.85
    assert directives.relationship_context == "Active relationship with andy"
    assert directives.memory_context == "3 relevant memories"


def test_directives_default_when_sections_missing():
    directives = get_personality_directives(PipelineResult(success=True, context=Context(message="hi")))

    assert directives.vocabulary_style == "balanced"
    assert directives.communication_tone == "adaptive"
    assert directives.confidence_level == 0.8
    assert directives.relationship_context is None
    assert directives.memory_context is None


def test_directives_with_short_priority_list_keep_default_style():
    context = Context(
        message="hi",
        personality_context=PersonalityContext(vocabulary_preferences={"priority_levels": ["whisper"]}),
    )

    assert get_personality_directives(PipelineResult(success=True, context=context)).vocabulary_style == "balanced"
