from abc import ABC, abstractmethod
from typing import AsyncIterator, List
from pydantic import BaseModel, ConfigDict, Field
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.tools import BaseTool

from agentstream.domain.attachments.extractor import message_text
from agentstream.domain.models.agent_input import Usage
from agentstream.domain.models.stream_chunk import (
    FinishChunk, ReasoningDeltaChunk, ReasoningEndChunk, StreamChunk
)


class ModelRequest(BaseModel):
    """One model invocation: system prompt, history and available tools"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    system: str
    messages: List[BaseMessage] = Field(default_factory=list)
    tools: List[BaseTool] = Field(default_factory=list)


class GenerationResult(BaseModel):
    """Outcome of a non-streaming model invocation"""
    text: str = ""
    messages: List[BaseMessage] = Field(default_factory=list, description="Response messages, unstripped")
    reasoning: List[str] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)


class BaseModelClient(ABC):
    """Provider adapter producing the upstream chunk stream for one call"""

    @abstractmethod
    def stream(self, request: ModelRequest) -> AsyncIterator[StreamChunk]:
        """Stream chunks for the request, ending with a ``FinishChunk``

        Nothing is sent to the provider until the iterator is first awaited.
        """

    async def generate(self, request: ModelRequest) -> GenerationResult:
        """Run the request to completion without surfacing intermediate chunks"""

        result = GenerationResult()
        reasoning: List[str] = []

        chunks = self.stream(request)
        try:
            async for chunk in chunks:
                if isinstance(chunk, ReasoningDeltaChunk):
                    reasoning.append(chunk.text)
                elif isinstance(chunk, ReasoningEndChunk):
                    result.reasoning.append("".join(reasoning))
                    reasoning = []
                elif isinstance(chunk, FinishChunk):
                    result.messages = list(chunk.messages)
                    result.usage = chunk.usage
        finally:
            aclose = getattr(chunks, "aclose", None)
            if aclose is not None:
                await aclose()

        # text of the final step
        for message in reversed(result.messages):
            if isinstance(message, AIMessage):
                result.text = message_text(message)
                break

        return result
