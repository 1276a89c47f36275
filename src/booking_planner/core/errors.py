"""
Error taxonomy for booking_planner.

Every error raised by the router derives from :class:`RouterError` so callers (the CLI, the HTTP
API) can catch the whole family in one place.  Configuration problems are fatal at startup; lookup
errors (unknown tool / sub-agent / session) are programming errors and are never retried.
"""


class RouterError(Exception):
    """Base class for all router errors."""


class ConfigurationError(RouterError):
    """Missing credential, malformed tool schema or an invalid agent setup."""


class AgentTreeError(ConfigurationError):
    """Raised when a sub-agent would break the tree shape of the agent graph."""


class DuplicateToolName(RouterError):
    """Raised when a tool name is registered twice in the same registry."""


class UnknownTool(RouterError):
    """Raised when a tool name is not present in the registry."""


class UnknownSubAgent(RouterError):
    """Raised when the model delegates to an agent that is not a direct child."""


class UnknownSession(RouterError):
    """Raised when a session ID is absent from the store (or owned by someone else)."""


class SessionBusy(RouterError):
    """Raised when a second run is started on a session that is already running."""


class SchemaValidationError(RouterError):
    """Raised when tool arguments cannot be coerced to the tool's declared schema."""

    def __init__(self, tool: str, detail: str):
        super().__init__(f"Invalid arguments for tool '{tool}': {detail}")
        self.tool = tool
        self.detail = detail


class HandlerError(RouterError):
    """Raised when a tool handler itself reports a failure."""

    def __init__(self, tool: str, detail: str):
        super().__init__(f"Tool '{tool}' failed: {detail}")
        self.tool = tool
        self.detail = detail


class StepLimitExceeded(RouterError):
    """Raised when an agent keeps calling tools past its step budget."""

    def __init__(self, agent: str, max_steps: int):
        super().__init__(f"Agent '{agent}' exceeded the limit of {max_steps} tool steps")
        self.agent = agent
        self.max_steps = max_steps


class ModelClientError(RouterError):
    """Raised when the language-model backend cannot be reached or errors out."""
