from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field
from datetime import datetime, timezone
from enum import Enum
from langchain_core.messages import BaseMessage

from .agent_input import AgentInput, Usage
from .attachment import Attachment


class ActionType(str, Enum):
    """Action types delivered to stream consumers"""
    AGENT_START = "agent_start"
    REASONING_START = "reasoning_start"
    REASONING_DELTA = "reasoning_delta"
    REASONING_END = "reasoning_end"
    TEXT_START = "text_start"
    TEXT_DELTA = "text_delta"
    TEXT_END = "text_end"
    ATTACHMENT_DELTA = "attachment_delta"
    TOOL_CALL_START = "tool_call_start"
    TOOL_CALL_END = "tool_call_end"
    IMAGE_DELTA = "image_delta"
    AGENT_END = "agent_end"


class BaseAction(BaseModel):
    """Base model for every agent action"""
    type: ActionType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AgentStartAction(BaseAction):
    type: Literal[ActionType.AGENT_START] = ActionType.AGENT_START
    input: AgentInput


class ReasoningStartAction(BaseAction):
    type: Literal[ActionType.REASONING_START] = ActionType.REASONING_START
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ReasoningDeltaAction(BaseAction):
    type: Literal[ActionType.REASONING_DELTA] = ActionType.REASONING_DELTA
    delta: str


class ReasoningEndAction(BaseAction):
    type: Literal[ActionType.REASONING_END] = ActionType.REASONING_END
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TextStartAction(BaseAction):
    type: Literal[ActionType.TEXT_START] = ActionType.TEXT_START


class TextDeltaAction(BaseAction):
    """Visible text, never containing a recognized attachments block"""
    type: Literal[ActionType.TEXT_DELTA] = ActionType.TEXT_DELTA
    delta: str


class TextEndAction(BaseAction):
    type: Literal[ActionType.TEXT_END] = ActionType.TEXT_END
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AttachmentDeltaAction(BaseAction):
    type: Literal[ActionType.ATTACHMENT_DELTA] = ActionType.ATTACHMENT_DELTA
    attachments: List[Attachment]


class ToolCallStartAction(BaseAction):
    type: Literal[ActionType.TOOL_CALL_START] = ActionType.TOOL_CALL_START
    tool_name: str
    tool_call_id: str
    input: Any = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ToolCallEndAction(BaseAction):
    """Tool result; a failed tool is reported through ``is_error``"""
    type: Literal[ActionType.TOOL_CALL_END] = ActionType.TOOL_CALL_END
    tool_name: str
    tool_call_id: str
    input: Any = None
    result: Any = None
    is_error: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ImageDeltaAction(BaseAction):
    type: Literal[ActionType.IMAGE_DELTA] = ActionType.IMAGE_DELTA
    image: str = Field(description="Base64 encoded image")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class AgentEndAction(BaseAction):
    """Terminal action of a successful turn"""
    type: Literal[ActionType.AGENT_END] = ActionType.AGENT_END
    messages: List[BaseMessage] = Field(default_factory=list, description="Stripped messages to append to history")
    reasoning: List[str] = Field(default_factory=list)
    usage: Optional[Usage] = None


AgentAction = Annotated[
    Union[
        AgentStartAction,
        ReasoningStartAction, ReasoningDeltaAction, ReasoningEndAction,
        TextStartAction, TextDeltaAction, TextEndAction,
        AttachmentDeltaAction,
        ToolCallStartAction, ToolCallEndAction,
        ImageDeltaAction,
        AgentEndAction,
    ],
    Field(discriminator="type"),
]
