import json
import time
from typing import Any, AsyncIterator, Dict, Iterator, List, Optional, Tuple
import structlog
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import (
    AIMessage, AIMessageChunk, BaseMessage, SystemMessage, ToolCall, ToolMessage,
    message_chunk_to_message,
)
from langchain_core.tools import BaseTool

from agentstream.domain.llm.model_client import BaseModelClient, ModelRequest
from agentstream.domain.models.agent_input import Usage
from agentstream.domain.models.stream_chunk import (
    FileChunk, FinishChunk, ReasoningDeltaChunk, ReasoningEndChunk, ReasoningStartChunk,
    StreamChunk, TextDeltaChunk, TextEndChunk, TextStartChunk, ToolCallChunk, ToolResultChunk,
)
from agentstream.infrastructure.observability.logging import agent_logger

logger = structlog.get_logger(__name__)

_TEXT = "text"
_REASONING = "reasoning"


def _chunk_parts(chunk: AIMessageChunk) -> Iterator[Tuple[str, str]]:
    """Reasoning and text fragments of one streamed message chunk, in order"""

    reasoning = chunk.additional_kwargs.get("reasoning_content")
    if isinstance(reasoning, str) and reasoning:
        yield _REASONING, reasoning

    content = chunk.content
    if isinstance(content, str):
        if content:
            yield _TEXT, content
        return

    for block in content:
        if isinstance(block, str):
            if block:
                yield _TEXT, block
            continue
        if not isinstance(block, dict):
            continue
        block_type = block.get("type")
        if block_type == "text" and block.get("text"):
            yield _TEXT, block["text"]
        elif block_type == "thinking" and block.get("thinking"):
            yield _REASONING, block["thinking"]
        elif block_type == "reasoning" and block.get("reasoning"):
            yield _REASONING, block["reasoning"]


def _message_images(message: AIMessage) -> Iterator[Tuple[str, str]]:
    """Base64 images generated inline by the model"""

    if isinstance(message.content, str):
        return
    for block in message.content:
        if not isinstance(block, dict) or block.get("type") != "image":
            continue
        payload = block.get("base64")
        if payload is None and block.get("source_type") == "base64":
            payload = block.get("data")
        if payload:
            yield payload, block.get("mime_type", "image/png")


def _start_chunk(kind: str, part_id: str) -> StreamChunk:
    if kind == _REASONING:
        return ReasoningStartChunk(id=part_id)
    return TextStartChunk(id=part_id)


def _delta_chunk(kind: str, part_id: str, text: str) -> StreamChunk:
    if kind == _REASONING:
        return ReasoningDeltaChunk(id=part_id, text=text)
    return TextDeltaChunk(id=part_id, text=text)


def _end_chunk(kind: str, part_id: str) -> StreamChunk:
    if kind == _REASONING:
        return ReasoningEndChunk(id=part_id)
    return TextEndChunk(id=part_id)


class LangChainModelClient(BaseModelClient):
    """
    Runs a LangChain chat model as the upstream of an agent turn.

    Each step streams one assistant message; when it requests tools they are
    executed and the model is called again with their results, until a step
    without tool calls or ``max_steps`` is reached. A failing tool is reported
    as an error result and an error ``ToolMessage``; it does not abort the turn.
    """

    def __init__(self, chat_model: BaseChatModel, max_steps: Optional[int] = None):
        self.chat_model = chat_model
        self.max_steps = max_steps

    @classmethod
    def from_settings(cls, chat_model: BaseChatModel, settings, **overrides) -> "LangChainModelClient":
        """Build a client using the step limit of process ``Settings``"""
        values = {"max_steps": settings.max_steps}
        values.update(overrides)
        return cls(chat_model, **values)

    async def stream(self, request: ModelRequest) -> AsyncIterator[StreamChunk]:
        model = self.chat_model.bind_tools(request.tools) if request.tools else self.chat_model
        tools_by_name = {tool.name: tool for tool in request.tools}
        history: List[BaseMessage] = [SystemMessage(content=request.system), *request.messages]
        produced: List[BaseMessage] = []
        usage = Usage()
        step = 0

        while True:
            step += 1
            aggregate: Optional[AIMessageChunk] = None
            open_part: Optional[str] = None
            part_index = 0

            upstream = model.astream(history + produced)
            try:
                async for chunk in upstream:
                    aggregate = chunk if aggregate is None else aggregate + chunk
                    for kind, text in _chunk_parts(chunk):
                        if kind != open_part:
                            if open_part is not None:
                                yield _end_chunk(open_part, f"{step}-{part_index}")
                            part_index += 1
                            open_part = kind
                            yield _start_chunk(kind, f"{step}-{part_index}")
                        yield _delta_chunk(kind, f"{step}-{part_index}", text)
            finally:
                await upstream.aclose()

            if open_part is not None:
                yield _end_chunk(open_part, f"{step}-{part_index}")
            if aggregate is None:
                break

            message = message_chunk_to_message(aggregate)
            produced.append(message)
            usage = usage + Usage.from_metadata(aggregate.usage_metadata)

            for payload, mime_type in _message_images(message):
                yield FileChunk(base64=payload, media_type=mime_type)

            if not message.tool_calls:
                break

            for call in message.tool_calls:
                if not call.get("id"):
                    call = ToolCall(name=call["name"], args=call["args"], id=f"call_{step}_{call['name']}")
                yield ToolCallChunk(tool_name=call["name"], tool_call_id=call["id"], input=call["args"])
                tool_message = await self._run_tool(tools_by_name, call)
                produced.append(tool_message)
                yield ToolResultChunk(
                    tool_name=call["name"],
                    tool_call_id=call["id"],
                    input=call["args"],
                    output=tool_message.content,
                    is_error=tool_message.status == "error",
                )

            if self.max_steps is not None and step >= self.max_steps:
                logger.warning("Step limit reached", max_steps=self.max_steps)
                break

        yield FinishChunk(messages=produced, usage=usage)

    async def _run_tool(self, tools_by_name: Dict[str, BaseTool], call: ToolCall) -> ToolMessage:
        tool = tools_by_name.get(call["name"])
        started = time.perf_counter()

        if tool is None:
            error = f"Tool not found: {call['name']}"
            agent_logger.log_tool_execution(call["name"], call["id"], success=False, error=error)
            return ToolMessage(content=error, tool_call_id=call["id"], name=call["name"], status="error")

        try:
            output = await tool.ainvoke(call["args"])
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.warning("Tool execution failed", tool=call["name"], error=str(e), exc_info=True)
            agent_logger.log_tool_execution(call["name"], call["id"], duration_ms=duration_ms, success=False, error=str(e))
            return ToolMessage(content=str(e), tool_call_id=call["id"], name=call["name"], status="error")

        duration_ms = (time.perf_counter() - started) * 1000
        agent_logger.log_tool_execution(call["name"], call["id"], duration_ms=duration_ms)
        return ToolMessage(content=_tool_content(output), tool_call_id=call["id"], name=call["name"])


def _tool_content(output: Any) -> str:
    if isinstance(output, str):
        return output
    return json.dumps(output, default=str)
