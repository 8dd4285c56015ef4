from typing import Callable, Dict, FrozenSet, List, Optional, Sequence
import structlog
from langchain_core.tools import BaseTool

from agentstream.domain.models.agent_config import AgentConfig, AllowedAction

logger = structlog.get_logger(__name__)

# Builds the tools of one capability group for a given agent configuration.
# Returning an empty list is how a group declines (e.g. web search without an API key).
ToolFactory = Callable[[AgentConfig], Sequence[BaseTool]]


class ToolRegistry:
    """Registry of tool factories, gated by ``AllowedAction``"""

    def __init__(self):
        self.factories: Dict[AllowedAction, List[ToolFactory]] = {}

    def register(self, action: AllowedAction, factory: ToolFactory):
        """Register a factory for a capability group"""

        self.factories.setdefault(action, []).append(factory)

    def registered_actions(self) -> FrozenSet[AllowedAction]:
        return frozenset(self.factories)

    def build_tools(self, config: AgentConfig, allowed: Optional[FrozenSet[AllowedAction]] = None) -> List[BaseTool]:
        """Construct the tools allowed by the config, in capability order

        ``allowed`` narrows the configured set further, e.g. for subagents.
        Later tools with an already used name are skipped.
        """

        allowed = config.allowed_actions if allowed is None else allowed & config.allowed_actions

        tools: List[BaseTool] = []
        names = set()
        for action in AllowedAction:
            if action not in allowed:
                continue
            for factory in self.factories.get(action, []):
                for tool in factory(config):
                    if tool.name in names:
                        logger.warning("Duplicate tool name skipped", tool=tool.name, action=action.value)
                        continue
                    names.add(tool.name)
                    tools.append(tool)

        logger.debug("Built tools", actions=sorted(a.value for a in allowed), tools=[t.name for t in tools])
        return tools
