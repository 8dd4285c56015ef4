from typing import AsyncIterator, List, Optional, Sequence
from enum import Enum
import structlog
from langchain_core.messages import BaseMessage

from agentstream.domain.attachments.extractor import strip_attachments_from_messages
from agentstream.domain.attachments.stream_extractor import AttachmentsStreamExtractor, StreamExtraction
from agentstream.domain.errors import StreamAlreadyConsumedError, UpstreamError
from agentstream.domain.models.agent_action import (
    AgentAction, AgentEndAction, AgentStartAction, AttachmentDeltaAction, ImageDeltaAction,
    ReasoningDeltaAction, ReasoningEndAction, ReasoningStartAction, TextDeltaAction,
    TextEndAction, TextStartAction, ToolCallEndAction, ToolCallStartAction,
)
from agentstream.domain.models.agent_input import AgentInput, Usage
from agentstream.domain.models.stream_chunk import (
    FileChunk, FinishChunk, ReasoningDeltaChunk, ReasoningEndChunk, ReasoningStartChunk,
    StreamChunk, TextDeltaChunk, TextEndChunk, TextStartChunk, ToolCallChunk, ToolResultChunk,
)
from agentstream.infrastructure.observability.logging import agent_logger, metrics

logger = structlog.get_logger(__name__)


class MapperState(str, Enum):
    """Lifecycle of an action stream"""
    IDLE = "idle"
    ACTIVE = "active"
    DONE = "done"


class ActionStreamMapper:
    """
    Maps the upstream chunk stream of one turn onto the agent action sequence.

    Text deltas pass through an ``AttachmentsStreamExtractor`` so consumers
    only ever see visible text, with recognized attachments surfaced as
    ``attachment_delta`` actions right after the text that resolved them.
    The sequence starts with ``agent_start`` and, when the upstream completes,
    ends with ``agent_end`` carrying the stripped history. An upstream failure
    ends it with ``UpstreamError`` instead; actions already delivered stand.

    The sequence can be consumed once. Closing it early closes the upstream.
    """

    def __init__(
        self,
        agent_input: AgentInput,
        chunks: AsyncIterator[StreamChunk],
        prompt_messages: Sequence[BaseMessage] = (),
    ):
        self.agent_input = agent_input
        self.prompt_messages = list(prompt_messages)
        self.state = MapperState.IDLE
        self._chunks = chunks
        self._extractor = AttachmentsStreamExtractor()
        self._reasoning: List[str] = []
        self._reasoning_buffer: List[str] = []
        self._finish: Optional[FinishChunk] = None

    def __aiter__(self) -> AsyncIterator[AgentAction]:
        return self.actions()

    async def actions(self) -> AsyncIterator[AgentAction]:
        if self.state != MapperState.IDLE:
            raise StreamAlreadyConsumedError("Action stream can only be consumed once")
        self.state = MapperState.ACTIVE

        try:
            yield AgentStartAction(input=self.agent_input)

            iterator = self._chunks.__aiter__()
            while True:
                try:
                    chunk = await iterator.__anext__()
                except StopAsyncIteration:
                    break
                except Exception as e:
                    logger.error("Upstream stream failed", error=str(e), capturing=self._extractor.capturing)
                    # a block still being captured is dropped, not resolved
                    self._extractor.reset()
                    agent_logger.log_turn_event("failed", "stream", data={"error": str(e)})
                    raise UpstreamError(str(e)) from e

                for action in self._map_chunk(chunk):
                    yield action

            yield self._end_action()
        finally:
            self.state = MapperState.DONE
            self._extractor.reset()
            aclose = getattr(self._chunks, "aclose", None)
            if aclose is not None:
                await aclose()

    def _map_chunk(self, chunk: StreamChunk) -> List[AgentAction]:
        """Actions for one upstream chunk, in emission order"""

        if isinstance(chunk, ReasoningStartChunk):
            self._reasoning_buffer = []
            return [ReasoningStartAction(metadata=chunk.model_dump())]
        elif isinstance(chunk, ReasoningDeltaChunk):
            self._reasoning_buffer.append(chunk.text)
            return [ReasoningDeltaAction(delta=chunk.text)]
        elif isinstance(chunk, ReasoningEndChunk):
            self._reasoning.append("".join(self._reasoning_buffer))
            self._reasoning_buffer = []
            return [ReasoningEndAction(metadata=chunk.model_dump())]
        elif isinstance(chunk, TextStartChunk):
            return [TextStartAction()]
        elif isinstance(chunk, TextDeltaChunk):
            return self._extraction_actions(self._extractor.push(chunk.text))
        elif isinstance(chunk, TextEndChunk):
            # blocks resolved only at end of text must not be lost
            actions = self._extraction_actions(self._extractor.flush_remainder())
            actions.append(TextEndAction(metadata=chunk.model_dump()))
            return actions
        elif isinstance(chunk, ToolCallChunk):
            return [ToolCallStartAction(
                tool_name=chunk.tool_name,
                tool_call_id=chunk.tool_call_id,
                input=chunk.input,
                metadata=chunk.model_dump()
            )]
        elif isinstance(chunk, ToolResultChunk):
            return [ToolCallEndAction(
                tool_name=chunk.tool_name,
                tool_call_id=chunk.tool_call_id,
                input=chunk.input,
                result=chunk.output,
                is_error=chunk.is_error,
                metadata=chunk.model_dump()
            )]
        elif isinstance(chunk, FileChunk):
            return [ImageDeltaAction(
                image=chunk.base64,
                metadata=chunk.model_dump(exclude={"base64"})
            )]
        elif isinstance(chunk, FinishChunk):
            self._finish = chunk
            return []

        logger.warning("Ignoring unknown chunk", chunk_type=getattr(chunk, "type", None))
        return []

    def _extraction_actions(self, extraction: StreamExtraction) -> List[AgentAction]:
        actions: List[AgentAction] = []
        if extraction.visible_text:
            actions.append(TextDeltaAction(delta=extraction.visible_text))
        if extraction.attachments:
            agent_logger.log_attachments("stream", [a.path for a in extraction.attachments])
            metrics.increment_counter("attachments.extracted", len(extraction.attachments), tags={"source": "stream"})
            actions.append(AttachmentDeltaAction(attachments=extraction.attachments))
        return actions

    def _end_action(self) -> AgentEndAction:
        response_messages = self._finish.messages if self._finish else []
        usage = self._finish.usage if self._finish else Usage()

        # attachments were already surfaced through attachment_delta
        stripped = strip_attachments_from_messages([*self.prompt_messages, *response_messages])

        return AgentEndAction(
            messages=stripped.messages,
            reasoning=self._reasoning,
            usage=usage,
        )
