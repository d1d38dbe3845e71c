"""
Tests for the langchain-backed completion service
"""
import json

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from railroad.domain.models.context import Context
from railroad.domain.stages.intent_classifier import IntentClassificationStage, LLMIntentClassifier
from railroad.infrastructure.llm.langchain_completion import LangChainCompletionService


@pytest.mark.asyncio
async def test_complete_returns_model_text():
    service = LangChainCompletionService(FakeListChatModel(responses=["Hello, Andy!"]))

    completion = await service.complete("Say hi", context="You are friendly")

    assert completion.text == "Hello, Andy!"


@pytest.mark.asyncio
async def test_classifier_over_chat_model():
    reply = json.dumps({
        "intent": "learning",
        "operations": ["memory_retrieval"],
        "entities_mentioned": ["Echo"],
        "emotional_context": "curious",
        "requires_memory": True,
        "requires_social": True,
        "requires_insight_storage": True,
    })
    service = LangChainCompletionService(FakeListChatModel(responses=[f"```json\n{reply}\n```"]))
    stage = IntentClassificationStage(primary=LLMIntentClassifier(service))

    context = await stage.run(Context(message="Teach me what Echo knows about graphs"))

    assert context.analysis.intent == "learning"
    assert context.analysis.entities_mentioned == ["echo"]
    assert context.analysis.requires_insight_storage is True
