"""
Schema definitions for planner <-> agent <-> tool <-> session messages.

These data models serve as the contract between the planner LLM, the agent tree, the tool registry
and the session store.  We keep them separate from runtime logic so they can be imported anywhere
without side-effects.

Two tagged unions live here:

* :data:`Decision` - what the planner wants the agent to do next.
* :data:`RunEvent` - one incremental unit of agent output streamed back to the caller.

Both are discriminated on a ``kind`` field, so call sites can match them exhaustively.
"""

from datetime import (
    datetime,
    timezone,
)
from enum import Enum
from typing import (
    Annotated,
    Any,
    Dict,
    List,
    Literal,
    Mapping,
    Tuple,
    Type,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)
from pydantic_core import to_jsonable_python


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Conversation content
# ---------------------------------------------------------------------------
class Role(str, Enum):
    """Who produced a turn."""

    USER = "user"
    AGENT = "agent"


class TextPart(BaseModel):
    """Plain text content."""

    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ToolCallPart(BaseModel):
    """A record of a tool (or transfer) the agent asked for."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_call"] = "tool_call"
    name: str
    args: Dict[str, Any] = Field(default_factory=dict)


class ToolResultPart(BaseModel):
    """The outcome of a tool call; exactly one of *result* / *error* is meaningful."""

    model_config = ConfigDict(frozen=True)

    type: Literal["tool_result"] = "tool_result"
    name: str
    result: Any = None
    error: str | None = None


ContentPart = Annotated[Union[TextPart, ToolCallPart, ToolResultPart], Field(discriminator="type")]


class Turn(BaseModel):
    """One immutable entry of a session's history."""

    model_config = ConfigDict(frozen=True)

    role: Role
    author: str = Field(..., description="Agent name, or 'user' for user turns")
    parts: Tuple[ContentPart, ...] = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=_now)

    @classmethod
    def user(cls, text: str) -> "Turn":
        """Build a user turn holding a single text part."""
        return cls(role=Role.USER, author="user", parts=(TextPart(text=text),))

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))


class Session(BaseModel):
    """An ordered conversation history keyed by (app_name, user_id, id)."""

    app_name: str
    user_id: str
    id: str
    turns: List[Turn] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------
class ToolCall(BaseModel):
    """A call that the planner wants the agent to execute."""

    name: str = Field(..., description="Registered tool name")
    args: Dict[str, Any] = Field(default_factory=dict, description="Keyword arguments for the tool")
    args_error: str | None = Field(
        None, description="Why the planner's arguments could not be read as a JSON object"
    )


class ToolDescriptor(BaseModel):
    """Name, description and typed argument schema of a tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str = ""
    args_model: Type[BaseModel]

    def parameters(self) -> Mapping[str, Dict[str, Any]]:
        """Return ``{field: {"type", "description", "required"}}`` for every argument."""
        params: Dict[str, Dict[str, Any]] = {}
        for field_name, info in self.args_model.model_fields.items():
            annotation = info.annotation
            params[field_name] = {
                "type": getattr(annotation, "__name__", str(annotation)),
                "description": info.description or "",
                "required": info.is_required(),
            }
        return params


# ---------------------------------------------------------------------------
# Planner decisions
# ---------------------------------------------------------------------------
class TextDecision(BaseModel):
    """Answer the user directly."""

    kind: Literal["text"] = "text"
    text: str


class ToolCallDecision(BaseModel):
    """Invoke one of the agent's tools."""

    kind: Literal["tool_call"] = "tool_call"
    call: ToolCall


class DelegationDecision(BaseModel):
    """Hand the request over to a named sub-agent."""

    kind: Literal["delegate"] = "delegate"
    agent: str


class ClarificationDecision(BaseModel):
    """The planner could not pick a single owner and asks the user instead."""

    kind: Literal["clarify"] = "clarify"
    question: str
    candidates: List[str] = Field(default_factory=list)


Decision = Annotated[
    Union[TextDecision, ToolCallDecision, DelegationDecision, ClarificationDecision],
    Field(discriminator="kind"),
]


class AgentCard(BaseModel):
    """What a parent agent knows about one of its children."""

    name: str
    description: str = ""


class PromptContext(BaseModel):
    """Everything the planner sees when asked for the next decision."""

    agent_name: str
    instruction: str = ""
    history: List[Turn] = Field(default_factory=list)
    new_turn: Turn
    scratch: List[Turn] = Field(default_factory=list, description="Tool turns of the current run")
    tools: List[ToolDescriptor] = Field(default_factory=list)
    sub_agents: List[AgentCard] = Field(default_factory=list)
    router: bool = False


# ---------------------------------------------------------------------------
# Run events
# ---------------------------------------------------------------------------
# Name of the tool-call part that records a hand-off in session history
TRANSFER_TO_AGENT = "transfer_to_agent"


class _EventBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    author: str
    invocation_id: str = ""


class TextEvent(_EventBase):
    """A text fragment produced by an agent."""

    kind: Literal["text"] = "text"
    text: str
    clarification: bool = False

    def to_turn(self) -> Turn:
        return Turn(role=Role.AGENT, author=self.author, parts=(TextPart(text=self.text),))


class ToolCallEvent(_EventBase):
    """One tool invocation with its arguments and either a result or an error."""

    kind: Literal["tool_call"] = "tool_call"
    tool: str
    args: Dict[str, Any] = Field(default_factory=dict)
    result: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_turn(self) -> Turn:
        return Turn(
            role=Role.AGENT,
            author=self.author,
            parts=(
                ToolCallPart(name=self.tool, args=self.args),
                ToolResultPart(
                    name=self.tool, result=to_jsonable_python(self.result), error=self.error
                ),
            ),
        )


class DelegationEvent(_EventBase):
    """The author handed the request over to *target*."""

    kind: Literal["delegate"] = "delegate"
    target: str

    def to_turn(self) -> Turn:
        return Turn(
            role=Role.AGENT,
            author=self.author,
            parts=(ToolCallPart(name=TRANSFER_TO_AGENT, args={"agent_name": self.target}),),
        )


class ErrorEvent(_EventBase):
    """Diagnostic emitted right before a run aborts."""

    kind: Literal["error"] = "error"
    code: str
    message: str

    def to_turn(self) -> Turn:
        return Turn(
            role=Role.AGENT,
            author=self.author,
            parts=(TextPart(text=f"[{self.code}] {self.message}"),),
        )


RunEvent = Annotated[
    Union[TextEvent, ToolCallEvent, DelegationEvent, ErrorEvent],
    Field(discriminator="kind"),
]
