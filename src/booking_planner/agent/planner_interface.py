"""
Planner interface for booking_planner.

This module is the only place that *directly* calls an LLM.  Everything else (agents, tools,
sessions) stays model-agnostic and talks to a planner through :meth:`BasePlanner.complete`, which
turns a :class:`~booking_planner.core.schema.PromptContext` into a
:data:`~booking_planner.core.schema.Decision`.

We support three back-ends out of the box:

1. **Anthropic** and **OpenAI** via their SDKs (requires an API key).
2. **Hugging Face Text-Generation-Inference (TGI)** for self-hosted models.

Additional providers can be added by subclassing :class:`BasePlanner` and registering via
:func:`register_planner`.
"""

import json
import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    ClassVar,
    Dict,
    List,
    Type,
)

import httpx
from pydantic_core import to_jsonable_python

from booking_planner.agent.decision_parser import parse_decision
from booking_planner.config import (
    Settings,
    settings,
)
from booking_planner.core.errors import (
    ConfigurationError,
    ModelClientError,
)
from booking_planner.core.schema import (
    TRANSFER_TO_AGENT,
    Decision,
    PromptContext,
    Role,
    TextPart,
    ToolCallPart,
    ToolResultPart,
    Turn,
)

logger = logging.getLogger(__name__)

Message = Dict[str, str]


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_PLANNER_REGISTRY: dict[str, Type["BasePlanner"]] = {}


def register_planner(name: str) -> Callable:
    """Decorator to register a planner class under *name*."""

    def wrapper(cls: Type["BasePlanner"]) -> Type["BasePlanner"]:
        _PLANNER_REGISTRY[name] = cls
        return cls

    return wrapper


def load_planner(name: str | None = None, config: Settings | None = None) -> "BasePlanner":
    """
    Factory that returns an instantiated planner.

    Fallback order for the provider:
    1. *name* arg
    2. ``settings.PLANNER`` env option

    Raises
    ------
    ConfigurationError
        If the provider is unknown or its credentials are missing.
    """
    config = config or settings
    target = (name or config.PLANNER).lower()
    cls = _PLANNER_REGISTRY.get(target)
    if cls is None:
        raise ConfigurationError(f"Planner '{target}' is not registered.")
    return cls.from_settings(config)


# ---------------------------------------------------------------------------
# Turn rendering helpers
# ---------------------------------------------------------------------------
def _render_call(part: ToolCallPart) -> str:
    """Replay a recorded call in the same JSON shape the planner is asked to produce."""
    if part.name == TRANSFER_TO_AGENT:
        return json.dumps({"delegate": part.args.get("agent_name")})
    return json.dumps({"tool": part.name, "args": to_jsonable_python(part.args)})


def _foreign_context(turn: Turn) -> str:
    """Summarise another agent's turn as plain context."""
    lines = ["For context:"]
    for part in turn.parts:
        if isinstance(part, TextPart):
            lines.append(f"[{turn.author}] said: {part.text}")
        elif isinstance(part, ToolCallPart) and part.name == TRANSFER_TO_AGENT:
            lines.append(f"[{turn.author}] handed the request to {part.args.get('agent_name')}")
        elif isinstance(part, ToolCallPart):
            args = json.dumps(to_jsonable_python(part.args))
            lines.append(f"[{turn.author}] called tool `{part.name}` with parameters: {args}")
        elif isinstance(part, ToolResultPart):
            outcome = part.error if part.error is not None else part.result
            label = "failed with" if part.error is not None else "returned"
            outcome_json = json.dumps(to_jsonable_python(outcome))
            lines.append(f"[{turn.author}] tool `{part.name}` {label}: {outcome_json}")
        else:
            raise TypeError(f"Unsupported content part: {part!r}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class BasePlanner(ABC):
    """Abstract planner that converts a prompt context into the agent's next decision."""

    # Common system prompt for all planners
    SYSTEM_PROMPT: ClassVar[
        str
    ] = """\
You are {agent_name}, one agent in a team of assistants that book travel for users.
Decide the single next action and respond with exactly one JSON object, no extra text:
- to reply to the user:            {{"answer": "<reply>"}}
"""
    TOOL_PROMPT: ClassVar[str] = """\
- to call one of your tools:       {"tool": "<name>", "args": { ... }}
"""
    DELEGATE_PROMPT: ClassVar[str] = """\
- to hand the request to an agent: {"delegate": "<agent name>"}
- if the request could belong to more than one agent, do not guess; ask instead:
  {"clarify": "<question for the user>", "candidates": ["<agent>", ...]}
"""
    ROUTER_PROMPT: ClassVar[str] = """\
You never answer requests yourself: your only job is to pick the agent that owns the request.
"""

    @classmethod
    def from_settings(cls, config: Settings) -> "BasePlanner":
        """Build the planner from application settings."""
        return cls()

    # ------------------------------------------------------------------ #
    # Prompt building
    # ------------------------------------------------------------------ #
    def _build_prompt(self, context: PromptContext) -> str:
        """Build the system prompt for *context*."""
        prompt = self.SYSTEM_PROMPT.format(agent_name=context.agent_name)
        if context.tools:
            prompt += self.TOOL_PROMPT
        if context.sub_agents:
            prompt += self.DELEGATE_PROMPT
        if context.router:
            prompt += self.ROUTER_PROMPT

        if context.instruction:
            prompt += f"\nInstructions:\n{context.instruction}\n"

        if context.tools:
            tools_info = []
            for tool in context.tools:
                param_desc = ", ".join(
                    f"{p}: {info['type']}{'' if info['required'] else '?'}"
                    + (f" ({info['description']})" if info["description"] else "")
                    for p, info in tool.parameters().items()
                )
                tools_info.append(f"- {tool.name}({param_desc}): {tool.description}")
            prompt += "\nAvailable tools:\n" + "\n".join(tools_info) + "\n"

        if context.sub_agents:
            agents_info = [f"- {a.name}: {a.description}" for a in context.sub_agents]
            prompt += "\nAvailable agents:\n" + "\n".join(agents_info) + "\n"

        return prompt

    @staticmethod
    def _render_turn(turn: Turn, agent_name: str) -> List[Message]:
        """
        Render *turn* as chat messages from *agent_name*'s point of view.

        Only the agent's own turns are replayed as assistant messages in the reply protocol.  Turns
        authored by other agents are passed as user-side context so the model never mistakes
        another agent's tool calls for its own.
        """
        if turn.role is not Role.USER and turn.author != agent_name:
            return [{"role": "user", "content": _foreign_context(turn)}]

        messages: List[Message] = []
        for part in turn.parts:
            if isinstance(part, TextPart):
                role = "user" if turn.role is Role.USER else "assistant"
                messages.append({"role": role, "content": part.text})
            elif isinstance(part, ToolCallPart):
                messages.append({"role": "assistant", "content": _render_call(part)})
            elif isinstance(part, ToolResultPart):
                outcome = part.error if part.error is not None else part.result
                status = "ERROR" if part.error is not None else "RESULT"
                content = f"TOOL {status} [{part.name}]: {json.dumps(to_jsonable_python(outcome))}"
                messages.append({"role": "user", "content": content})
            else:
                raise TypeError(f"Unsupported content part: {part!r}")
        return messages

    def _build_messages(self, context: PromptContext) -> List[Message]:
        """Render history, the new turn and in-run tool turns as alternating chat messages."""
        rendered: List[Message] = []
        for turn in [*context.history, context.new_turn, *context.scratch]:
            rendered.extend(self._render_turn(turn, context.agent_name))

        # Providers expect alternating roles starting with the user
        merged: List[Message] = []
        for message in rendered:
            if merged and merged[-1]["role"] == message["role"]:
                merged[-1] = {
                    "role": message["role"],
                    "content": merged[-1]["content"] + "\n" + message["content"],
                }
            else:
                merged.append(message)
        if merged and merged[0]["role"] != "user":
            merged.insert(0, {"role": "user", "content": "(conversation continues)"})
        return merged

    @abstractmethod
    def complete(self, context: PromptContext) -> Decision:
        """Return the agent's next decision for *context*."""


# ---------------------------------------------------------------------------
# Concrete planners
# ---------------------------------------------------------------------------
def _require_key(config: Settings, specific: str | None, env_name: str) -> str:
    key = specific or config.API_KEY
    if not key:
        raise ConfigurationError(f"{env_name} (or API_KEY) environment variable is not set")
    return key


@register_planner("tgi")
class TGIPlanner(BasePlanner):
    """TGI-based planner with httpx client."""

    def __init__(
        self,
        endpoint: str = "http://tgi:8080/generate",
        timeout: float = 30.0,
        temperature: float = 0.2,
    ):
        self.endpoint = endpoint
        self.timeout = timeout
        self.temperature = temperature

    @classmethod
    def from_settings(cls, config: Settings) -> "TGIPlanner":
        return cls(config.TGI_ENDPOINT, config.MODEL_TIMEOUT, config.MODEL_TEMPERATURE)

    def complete(self, context: PromptContext) -> Decision:
        """Call TGI endpoint and parse the generated text."""
        conversation = "\n".join(
            f"{'User' if m['role'] == 'user' else 'Assistant'}: {m['content']}"
            for m in self._build_messages(context)
        )
        payload: Dict[str, Any] = {
            "inputs": f"{self._build_prompt(context)}\n\n{conversation}\nAssistant:",
            "parameters": {
                "max_new_tokens": 256,
                "temperature": self.temperature,
                "stop": ["User:", "</s>"],
            },
        }

        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.post(self.endpoint, json=payload)
                resp.raise_for_status()
                content = resp.json()["generated_text"]
        except httpx.HTTPError as e:
            logger.error("TGI request error: %s", str(e))
            raise ModelClientError(f"Error calling TGI endpoint: {e}") from e
        except (KeyError, ValueError) as e:
            logger.error("TGI planner error: %s", str(e))
            raise ModelClientError(f"Error processing TGI response: {e}") from e

        logger.debug("TGI planner response: %s", content)
        return parse_decision(content)


@register_planner("openai")
class OpenAIPlanner(BasePlanner):
    """OpenAI-based planner using JSON response format."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 30.0,
        temperature: float = 0.2,
    ):
        import openai  # pylint: disable=import-outside-toplevel

        self._openai = openai
        self.client = openai.OpenAI(api_key=api_key, timeout=timeout)
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls, config: Settings) -> "OpenAIPlanner":
        key = _require_key(config, config.OPENAI_API_KEY, "OPENAI_API_KEY")
        return cls(key, config.OPENAI_MODEL, config.MODEL_TIMEOUT, config.MODEL_TEMPERATURE)

    def complete(self, context: PromptContext) -> Decision:
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": self._build_prompt(context)},
            *self._build_messages(context),
        ]
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=messages,  # type: ignore[arg-type]
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except self._openai.OpenAIError as e:
            logger.error("OpenAI planner error: %s", str(e))
            raise ModelClientError(f"Error calling OpenAI: {e}") from e

        content = resp.choices[0].message.content
        if not content:
            logger.error("OpenAI planner returned empty response")
            raise ModelClientError("Empty response from OpenAI")

        logger.debug("OpenAI planner response: %s", content)
        return parse_decision(content)


@register_planner("anthropic")
class AnthropicPlanner(BasePlanner):
    """Anthropic Claude-based planner."""

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-5-haiku-latest",
        timeout: float = 30.0,
        temperature: float = 0.2,
    ):
        import anthropic  # pylint: disable=import-outside-toplevel

        self._anthropic = anthropic
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout)
        self.model = model
        self.temperature = temperature

    @classmethod
    def from_settings(cls, config: Settings) -> "AnthropicPlanner":
        key = _require_key(config, config.ANTHROPIC_API_KEY, "ANTHROPIC_API_KEY")
        return cls(key, config.ANTHROPIC_MODEL, config.MODEL_TIMEOUT, config.MODEL_TEMPERATURE)

    def complete(self, context: PromptContext) -> Decision:
        try:
            response = self.client.messages.create(
                model=self.model,
                max_tokens=1024,
                system=self._build_prompt(context),
                messages=self._build_messages(context),  # type: ignore[arg-type]
                temperature=self.temperature,
            )
        except self._anthropic.APIError as e:
            logger.error("Anthropic planner error: %s", str(e))
            raise ModelClientError(f"Error calling Anthropic: {e}") from e

        # Handle different content block types from Anthropic API
        content = "".join(block.text for block in response.content if block.type == "text")
        logger.debug("Anthropic planner response: %s", content)
        return parse_decision(content)
