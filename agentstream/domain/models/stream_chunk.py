from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field
from enum import Enum
from langchain_core.messages import BaseMessage

from .agent_input import Usage


class ChunkType(str, Enum):
    """Upstream model stream chunk types"""
    REASONING_START = "reasoning-start"
    REASONING_DELTA = "reasoning-delta"
    REASONING_END = "reasoning-end"
    TEXT_START = "text-start"
    TEXT_DELTA = "text-delta"
    TEXT_END = "text-end"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    FILE = "file"
    FINISH = "finish"


class BaseChunk(BaseModel):
    """Base model for all upstream chunks"""
    type: ChunkType
    id: Optional[str] = Field(None, description="Provider part identifier")
    provider_metadata: Dict[str, Any] = Field(default_factory=dict)


class ReasoningStartChunk(BaseChunk):
    type: Literal[ChunkType.REASONING_START] = ChunkType.REASONING_START


class ReasoningDeltaChunk(BaseChunk):
    type: Literal[ChunkType.REASONING_DELTA] = ChunkType.REASONING_DELTA
    text: str


class ReasoningEndChunk(BaseChunk):
    type: Literal[ChunkType.REASONING_END] = ChunkType.REASONING_END


class TextStartChunk(BaseChunk):
    type: Literal[ChunkType.TEXT_START] = ChunkType.TEXT_START


class TextDeltaChunk(BaseChunk):
    type: Literal[ChunkType.TEXT_DELTA] = ChunkType.TEXT_DELTA
    text: str


class TextEndChunk(BaseChunk):
    type: Literal[ChunkType.TEXT_END] = ChunkType.TEXT_END


class ToolCallChunk(BaseChunk):
    type: Literal[ChunkType.TOOL_CALL] = ChunkType.TOOL_CALL
    tool_name: str
    tool_call_id: str
    input: Any = None


class ToolResultChunk(BaseChunk):
    type: Literal[ChunkType.TOOL_RESULT] = ChunkType.TOOL_RESULT
    tool_name: str
    tool_call_id: str
    input: Any = None
    output: Any = None
    is_error: bool = False


class FileChunk(BaseChunk):
    type: Literal[ChunkType.FILE] = ChunkType.FILE
    base64: str
    media_type: str = "image/png"


class FinishChunk(BaseChunk):
    """Completion notification carrying the response messages of the call"""
    type: Literal[ChunkType.FINISH] = ChunkType.FINISH
    messages: List[BaseMessage] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)


StreamChunk = Annotated[
    Union[
        ReasoningStartChunk, ReasoningDeltaChunk, ReasoningEndChunk,
        TextStartChunk, TextDeltaChunk, TextEndChunk,
        ToolCallChunk, ToolResultChunk, FileChunk, FinishChunk,
    ],
    Field(discriminator="type"),
]
