from .heartbeat import heartbeat_prompt
from .schedule import schedule_prompt
from .subagent import subagent_system_prompt
from .system import system_prompt
from .user import user_prompt

__all__ = [
    "heartbeat_prompt",
    "schedule_prompt",
    "subagent_system_prompt",
    "system_prompt",
    "user_prompt",
]
