"""Shared fixtures: scripted model clients and agent configuration."""

from __future__ import annotations

import json
from typing import Any, AsyncIterator, List, Optional

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessageChunk, BaseMessage
from langchain_core.messages.tool import tool_call_chunk
from langchain_core.outputs import ChatGeneration, ChatGenerationChunk, ChatResult

from agentstream.domain.llm.model_client import BaseModelClient, ModelRequest
from agentstream.domain.models.agent_config import AgentConfig
from agentstream.domain.models.agent_input import IdentityContext
from agentstream.infrastructure.observability.logging import metrics


class ScriptedModelClient(BaseModelClient):
    """Replays a fixed chunk list, optionally failing afterwards."""

    def __init__(self, chunks: List[Any], error: Optional[Exception] = None):
        self.chunks = chunks
        self.error = error
        self.requests: List[ModelRequest] = []
        self.closed = False

    async def stream(self, request: ModelRequest) -> AsyncIterator[Any]:
        self.requests.append(request)
        try:
            for chunk in self.chunks:
                yield chunk
            if self.error is not None:
                raise self.error
        finally:
            self.closed = True


class ScriptedChatModel(BaseChatModel):
    """Chat model streaming one scripted list of chunks per call."""

    responses: List[List[AIMessageChunk]]
    calls: int = 0
    seen: List[List[BaseMessage]] = []

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        return self

    def _next_response(self, messages: List[BaseMessage]) -> List[AIMessageChunk]:
        response = self.responses[self.calls]
        self.calls += 1
        self.seen.append(list(messages))
        return response

    def _generate(self, messages, stop=None, run_manager=None, **kwargs) -> ChatResult:
        chunks = self._next_response(messages)
        merged = chunks[0]
        for chunk in chunks[1:]:
            merged = merged + chunk
        return ChatResult(generations=[ChatGeneration(message=merged)])

    async def _astream(self, messages, stop=None, run_manager=None, **kwargs):
        for chunk in self._next_response(messages):
            yield ChatGenerationChunk(message=chunk)


def text_chunks(*parts: str) -> List[AIMessageChunk]:
    return [AIMessageChunk(content=part) for part in parts]


def tool_call_response(name: str, args: dict, call_id: str) -> List[AIMessageChunk]:
    return [AIMessageChunk(
        content="",
        tool_call_chunks=[tool_call_chunk(name=name, args=json.dumps(args), id=call_id, index=0)],
    )]


async def collect(iterator) -> list:
    return [item async for item in iterator]


@pytest.fixture
def identity() -> IdentityContext:
    return IdentityContext(contact_id="c-42", contact_name="Ada")


@pytest.fixture
def config(identity) -> AgentConfig:
    return AgentConfig(identity=identity, channels=("telegram", "web"), current_channel="web")


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics.reset()
    yield
    metrics.reset()
