from typing import FrozenSet, Tuple
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum

from .agent_input import IdentityContext


class AllowedAction(str, Enum):
    """Capabilities that gate which tool groups are constructed"""
    WEB = "web"
    SCHEDULE = "schedule"
    MEMORY = "memory"
    SUBAGENT = "subagent"
    CONTACT = "contact"
    MESSAGE = "message"
    SKILL = "skill"


ALL_ACTIONS: FrozenSet[AllowedAction] = frozenset(AllowedAction)


class AgentConfig(BaseModel):
    """Immutable configuration of one agent pipeline"""
    model_config = ConfigDict(frozen=True)

    identity: IdentityContext
    language: str = Field(default="Same as the user input")
    active_context_time: int = Field(default=24 * 60, description="Minutes of history loaded into context")
    allowed_actions: FrozenSet[AllowedAction] = Field(default=ALL_ACTIONS)
    channels: Tuple[str, ...] = Field(default_factory=tuple)
    current_channel: str = Field(default="Unknown Channel")

    @classmethod
    def from_settings(cls, settings, identity: IdentityContext, **overrides) -> "AgentConfig":
        """Build a config from process ``Settings`` defaults"""
        values = {
            "language": settings.language,
            "active_context_time": settings.active_context_time,
            "current_channel": settings.current_channel,
        }
        values.update(overrides)
        return cls(identity=identity, **values)

    def allows(self, action: AllowedAction) -> bool:
        return action in self.allowed_actions
