from typing import List, Optional
import structlog
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from railroad.domain.collaborators import Completion, CompletionService

logger = structlog.get_logger(__name__)


class LangChainCompletionService(CompletionService):
    """Completion capability backed by any langchain chat model"""

    def __init__(self, chat_model: BaseChatModel):
        self.chat_model = chat_model

    async def complete(self, prompt: str, context: Optional[str] = None) -> Completion:
        messages: List[BaseMessage] = []
        if context:
            messages.append(SystemMessage(content=context))
        messages.append(HumanMessage(content=prompt))

        response = await self.chat_model.ainvoke(messages)

        content = response.content
        if isinstance(content, list):
            # Multi-part responses: keep the text parts only
            content = "".join(
                part if isinstance(part, str) else str(part.get("text", ""))
                for part in content
            )

        logger.debug("Completion received", prompt_length=len(prompt), response_length=len(content))
        return Completion(text=content)
