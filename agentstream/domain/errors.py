class AgentStreamError(Exception):
    """Base class for errors raised by the agent pipeline"""


class UpstreamError(AgentStreamError):
    """The model/provider call failed; fatal for the current turn"""


class StreamAlreadyConsumedError(AgentStreamError):
    """An action stream was iterated more than once"""
