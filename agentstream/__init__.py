from agentstream.domain.attachments import (
    AttachmentsStreamExtractor,
    dedupe_attachments,
    extract_attachments,
    merge_attachments,
    strip_attachments_from_messages,
)
from agentstream.domain.errors import AgentStreamError, StreamAlreadyConsumedError, UpstreamError
from agentstream.domain.llm.model_client import BaseModelClient, GenerationResult, ModelRequest
from agentstream.domain.models import (
    ALL_ACTIONS,
    ActionType,
    AgentAction,
    AgentConfig,
    AgentInput,
    AgentResponse,
    AllowedAction,
    Attachment,
    FileAttachment,
    IdentityContext,
    ImageAttachment,
    Schedule,
    Usage,
)
from agentstream.domain.orchestration.core.main_agent import Agent
from agentstream.domain.streaming.action_stream import ActionStreamMapper, MapperState
from agentstream.domain.tool.tool_registry import ToolRegistry

__version__ = "0.1.0"
