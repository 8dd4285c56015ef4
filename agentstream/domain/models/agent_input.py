from typing import Dict, Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from langchain_core.messages import BaseMessage

from .attachment import Attachment, FileAttachment, ImageAttachment


class Usage(BaseModel):
    """Token usage reported by the model provider"""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: "Usage") -> "Usage":
        return Usage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )

    @classmethod
    def from_metadata(cls, metadata: Optional[Dict[str, Any]]) -> "Usage":
        """Build from a langchain ``usage_metadata`` mapping"""
        if not metadata:
            return cls()
        input_tokens = metadata.get("input_tokens", 0) or 0
        output_tokens = metadata.get("output_tokens", 0) or 0
        return cls(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            total_tokens=metadata.get("total_tokens") or input_tokens + output_tokens,
        )


class IdentityContext(BaseModel):
    """Who the agent is talking to"""
    model_config = ConfigDict(frozen=True)

    contact_id: str = Field(description="Contact identifier of the sender")
    contact_name: str = Field(description="Display name of the sender")
    bot_id: Optional[str] = Field(None, description="Identifier of the bot itself")


class Schedule(BaseModel):
    """A scheduled command delivered to the agent by the scheduler"""
    name: str
    description: str = ""
    pattern: str = Field(description="Cron pattern")
    command: str = Field(description="Instruction executed on each trigger")
    max_calls: Optional[int] = Field(None, description="Unlimited when unset")


class AgentInput(BaseModel):
    """Input of one conversational turn"""
    query: str = Field(description="User query or request")
    messages: List[BaseMessage] = Field(default_factory=list, description="Prior conversation history")
    attachments: List[Attachment] = Field(default_factory=list)

    @property
    def file_paths(self) -> List[str]:
        return [a.path for a in self.attachments if isinstance(a, FileAttachment)]

    @property
    def images(self) -> List[ImageAttachment]:
        return [a for a in self.attachments if isinstance(a, ImageAttachment)]


class AgentResponse(BaseModel):
    """Result of a one-shot turn"""
    text: str
    messages: List[BaseMessage] = Field(default_factory=list, description="Messages to append to history")
    reasoning: List[str] = Field(default_factory=list)
    usage: Usage = Field(default_factory=Usage)
    attachments: List[Attachment] = Field(default_factory=list)
