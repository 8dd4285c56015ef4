from .agent_action import ActionType, AgentAction
from .agent_config import ALL_ACTIONS, AgentConfig, AllowedAction
from .agent_input import AgentInput, AgentResponse, IdentityContext, Schedule, Usage
from .attachment import Attachment, FileAttachment, ImageAttachment
from .stream_chunk import ChunkType, StreamChunk
