"""
Tests for message intent classification
"""
import json

import pytest

from railroad.domain.errors import ClassificationError
from railroad.domain.models.context import Context, SessionContext
from railroad.domain.stages.intent_classifier import (
    IntentClassificationStage, KeywordIntentClassifier, LLMIntentClassifier,
    build_analysis_prompt, parse_analysis
)

from fakes import FailingCompletion, FailingSessionState, FakeCompletion, StaticSessionState


ANALYSIS_JSON = json.dumps({
    "intent": "technical",
    "operations": ["memory_retrieval"],
    "entities_mentioned": ["Andy"],
    "emotional_context": "focused",
    "requires_memory": True,
    "requires_social": True,
    "requires_insight_storage": False,
})


@pytest.mark.asyncio
async def test_fallback_when_classifier_service_fails():
    """Test "remember our project, Andy" with the primary classifier down"""
    stage = IntentClassificationStage(primary=LLMIntentClassifier(FailingCompletion()))

    context = await stage.run(Context(message="remember our project, Andy"))

    analysis = context.analysis
    assert analysis.requires_memory is True
    assert "andy" in analysis.entities_mentioned
    assert analysis.intent == "general"
    assert analysis.requires_social is True
    assert analysis.operations == ["basic_response"]
    assert context.operations.performed == ["message-analysis"]
    assert context.errors == []


@pytest.mark.asyncio
async def test_primary_classifier_result_is_used():
    completion = FakeCompletion(analysis=ANALYSIS_JSON)
    stage = IntentClassificationStage(primary=LLMIntentClassifier(completion))

    context = await stage.run(Context(message="Andy, the build is broken again", seed_context="CI logs"))

    assert context.analysis.intent == "technical"
    assert context.analysis.entities_mentioned == ["andy"]
    assert context.analysis.emotional_context == "focused"
    assert 'Context: "CI logs"' in completion.prompts[0]


@pytest.mark.asyncio
async def test_malformed_model_reply_falls_back_to_keywords():
    stage = IntentClassificationStage(primary=LLMIntentClassifier(FakeCompletion(analysis="I think it's social?")))

    context = await stage.run(Context(message="Can you recall what Echo said?"))

    assert context.analysis.intent == "general"
    assert context.analysis.requires_memory is True
    assert context.analysis.entities_mentioned == ["echo"]


@pytest.mark.asyncio
async def test_stage_without_primary_uses_keywords():
    context = await IntentClassificationStage().run(Context(message="Hello there"))

    assert context.analysis.intent == "general"
    assert context.analysis.entities_mentioned == []
    assert context.analysis.requires_social is False


def test_keyword_classifier_flags():
    classifier = KeywordIntentClassifier()

    analysis = classifier.analyze("I think I'm stuck, Claude")

    assert analysis.requires_insight_storage is True
    assert analysis.requires_memory is False
    assert analysis.emotional_context == "frustrated"
    assert analysis.entities_mentioned == ["claude"]


def test_keyword_classifier_uses_configured_names():
    classifier = KeywordIntentClassifier(known_names=["Maya"])

    assert classifier.analyze("maya and andy").entities_mentioned == ["maya"]


def test_keyword_classifier_default_emotion_is_neutral():
    assert KeywordIntentClassifier().analyze("The sky is blue").emotional_context == "neutral"


def test_parse_analysis_accepts_fenced_json():
    analysis = parse_analysis(f"Here you go:\n```json\n{ANALYSIS_JSON}\n```")

    assert analysis.intent == "technical"
    assert analysis.requires_memory is True


def test_parse_analysis_fills_missing_fields():
    analysis = parse_analysis('{"intent": "social"}')

    assert analysis.intent == "social"
    assert analysis.operations == ["basic_response"]
    assert analysis.emotional_context == "neutral"
    assert analysis.requires_memory is False


@pytest.mark.parametrize("reply", ["not json", "[1, 2]", '{"operations": "memory"}'])
def test_parse_analysis_rejects_malformed_replies(reply):
    with pytest.raises(ClassificationError):
        parse_analysis(reply)


def test_analysis_prompt_includes_prior_state():
    session = SessionContext(session_id="session-1", mode="focused", cognitive_load=0.25)

    prompt = build_analysis_prompt("hello", session=session)

    assert 'Message: "hello"' in prompt
    assert "mode=focused" in prompt
    assert "cognitive_load=0.25" in prompt


@pytest.mark.asyncio
async def test_upstream_session_state_reaches_the_classifier_prompt():
    completion = FakeCompletion(analysis=ANALYSIS_JSON)
    stage = IntentClassificationStage(
        primary=LLMIntentClassifier(completion),
        state_provider=StaticSessionState({"mode": "deep_work", "cognitiveLoad": 0.9, "attention_focus": "release"}),
    )

    context = await stage.run(Context(message="ship it"))

    assert "mode=deep_work" in completion.prompts[0]
    assert "cognitive_load=0.90" in completion.prompts[0]
    assert "focus=release" in completion.prompts[0]
    assert context.session_context is None


@pytest.mark.asyncio
async def test_unavailable_session_state_is_left_out_of_the_prompt():
    completion = FakeCompletion(analysis=ANALYSIS_JSON)
    stage = IntentClassificationStage(primary=LLMIntentClassifier(completion), state_provider=FailingSessionState())

    context = await stage.run(Context(message="ship it"))

    assert "Current state:" not in completion.prompts[0]
    assert context.analysis.intent == "technical"
    assert context.errors == []
