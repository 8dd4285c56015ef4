from typing import AsyncIterator, Optional, Sequence
import time
import uuid
import structlog
from datetime import datetime, timezone
from langchain_core.messages import BaseMessage, HumanMessage

from agentstream.domain.attachments.dedupe import merge_attachments
from agentstream.domain.attachments.extractor import extract_attachments, strip_attachments_from_messages
from agentstream.domain.errors import UpstreamError
from agentstream.domain.llm.model_client import BaseModelClient, GenerationResult, ModelRequest
from agentstream.domain.models.agent_action import AgentAction
from agentstream.domain.models.agent_config import AgentConfig
from agentstream.domain.models.agent_input import AgentInput, AgentResponse, Schedule
from agentstream.domain.models.attachment import FileAttachment
from agentstream.domain.prompts import (
    heartbeat_prompt, schedule_prompt, subagent_system_prompt, system_prompt, user_prompt
)
from agentstream.domain.streaming.action_stream import ActionStreamMapper
from agentstream.domain.tool.tool_registry import ToolRegistry
from agentstream.infrastructure.observability.logging import agent_logger, metrics
from agentstream.infrastructure.observability.tracing import traced

logger = structlog.get_logger(__name__)


class Agent:
    """
    Runs conversational turns for one configured agent.

    ``ask`` and the scheduled/heartbeat/subagent variants run a turn to
    completion; ``stream`` yields the turn as an action sequence. Every
    entry point returns history with attachment markup stripped, so later
    turns never feed the raw directive back to the model.
    """

    def __init__(
        self,
        model_client: BaseModelClient,
        config: AgentConfig,
        tool_registry: Optional[ToolRegistry] = None
    ):
        self.model_client = model_client
        self.config = config
        self.tool_registry = tool_registry or ToolRegistry()
        self.tools = self.tool_registry.build_tools(config)

    def _system_prompt(self, attachment_paths: Sequence[str] = ()) -> str:
        return system_prompt(
            date=datetime.now(timezone.utc),
            language=self.config.language,
            max_context_load_time=self.config.active_context_time,
            channels=self.config.channels,
            attachments=attachment_paths,
        )

    def _user_message(self, agent_input: AgentInput) -> HumanMessage:
        """Build the user turn: headed query text plus inline images"""

        text = user_prompt(
            agent_input.query,
            contact_id=self.config.identity.contact_id,
            contact_name=self.config.identity.contact_name,
            channel=self.config.current_channel,
            date=datetime.now(timezone.utc),
            attachments=agent_input.file_paths,
        )
        images = agent_input.images
        if not images:
            return HumanMessage(content=text)

        return HumanMessage(content=[
            {"type": "text", "text": text},
            *[
                {"type": "image_url", "image_url": {"url": f"data:{image.mime_type};base64,{image.base64}"}}
                for image in images
            ],
        ])

    async def _generate(self, entry_point: str, request: ModelRequest) -> GenerationResult:
        """Invoke the model without surfacing intermediate actions"""

        turn_log = logger.bind(turn_id=uuid.uuid4().hex[:12], entry_point=entry_point)
        turn_log.info("Turn started", history=len(request.messages), tools=len(request.tools))
        started = time.perf_counter()

        try:
            result = await self.model_client.generate(request)
        except Exception as e:
            turn_log.error("Model call failed", error=str(e))
            agent_logger.log_turn_event("failed", entry_point, data={"error": str(e)})
            raise UpstreamError(str(e)) from e

        duration_ms = (time.perf_counter() - started) * 1000
        metrics.record_latency(f"agent.{entry_point}", duration_ms)
        turn_log.info("Turn finished", duration_ms=duration_ms, response_messages=len(result.messages))
        return result

    def _respond(self, entry_point: str, prompt_message: BaseMessage, result: GenerationResult) -> AgentResponse:
        """Strip markup from the result and merge text and message attachments"""

        text, text_attachments = extract_attachments(result.text)
        stripped = strip_attachments_from_messages(result.messages)
        attachments = merge_attachments(text_attachments, stripped.attachments)
        # markup typed by the user is not an attachment of the response
        prompt_message = strip_attachments_from_messages([prompt_message]).messages[0]

        if attachments:
            agent_logger.log_attachments(
                entry_point, [a.path for a in attachments if isinstance(a, FileAttachment)]
            )
            metrics.increment_counter("attachments.extracted", len(attachments), tags={"source": entry_point})

        return AgentResponse(
            text=text,
            messages=[prompt_message, *stripped.messages],
            reasoning=result.reasoning,
            usage=result.usage,
            attachments=attachments,
        )

    @traced("agent.ask")
    async def ask(self, agent_input: AgentInput) -> AgentResponse:
        """Run one turn to completion"""

        user_message = self._user_message(agent_input)
        request = ModelRequest(
            system=self._system_prompt(agent_input.file_paths),
            messages=[*agent_input.messages, user_message],
            tools=self.tools,
        )
        result = await self._generate("ask", request)
        return self._respond("ask", user_message, result)

    @traced("agent.ask_as_subagent")
    async def ask_as_subagent(
        self,
        query: str,
        name: str,
        description: str = "",
        messages: Sequence[BaseMessage] = ()
    ) -> AgentResponse:
        """Run a turn as a named subagent with its own context"""

        user_message = HumanMessage(content=query)
        request = ModelRequest(
            system=subagent_system_prompt(datetime.now(timezone.utc), name, description),
            messages=[*messages, user_message],
            tools=self.tools,
        )
        result = await self._generate("subagent", request)
        return self._respond("subagent", user_message, result)

    @traced("agent.trigger_schedule")
    async def trigger_schedule(self, schedule: Schedule, messages: Sequence[BaseMessage] = ()) -> AgentResponse:
        """Run the command of a triggered schedule"""

        schedule_message = HumanMessage(content=schedule_prompt(schedule, datetime.now(timezone.utc)))
        request = ModelRequest(
            system=self._system_prompt(),
            messages=[*messages, schedule_message],
            tools=self.tools,
        )
        result = await self._generate("schedule", request)
        return self._respond("schedule", schedule_message, result)

    @traced("agent.trigger_heartbeat")
    async def trigger_heartbeat(
        self,
        interval: int,
        messages: Sequence[BaseMessage] = (),
        checklist: str = ""
    ) -> AgentResponse:
        """Run a periodic heartbeat check"""

        heartbeat_message = HumanMessage(content=heartbeat_prompt(interval, datetime.now(timezone.utc), checklist))
        request = ModelRequest(
            system=self._system_prompt(),
            messages=[*messages, heartbeat_message],
            tools=self.tools,
        )
        result = await self._generate("heartbeat", request)
        return self._respond("heartbeat", heartbeat_message, result)

    @traced("agent.stream")
    async def stream(self, agent_input: AgentInput) -> AsyncIterator[AgentAction]:
        """Yield the turn as an ordered action sequence"""

        user_message = self._user_message(agent_input)
        request = ModelRequest(
            system=self._system_prompt(agent_input.file_paths),
            messages=[*agent_input.messages, user_message],
            tools=self.tools,
        )
        mapper = ActionStreamMapper(
            agent_input=agent_input,
            chunks=self.model_client.stream(request),
            prompt_messages=[user_message],
        )

        turn_log = logger.bind(turn_id=uuid.uuid4().hex[:12], entry_point="stream")
        turn_log.info("Turn started", history=len(request.messages), tools=len(request.tools))
        started = time.perf_counter()
        delivered = 0

        actions = mapper.actions()
        try:
            async for action in actions:
                delivered += 1
                yield action
        finally:
            await actions.aclose()
            duration_ms = (time.perf_counter() - started) * 1000
            metrics.record_latency("agent.stream", duration_ms)
            turn_log.info("Turn closed", duration_ms=duration_ms, actions=delivered, state=mapper.state.value)
