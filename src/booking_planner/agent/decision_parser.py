"""
Turn raw planner output into a :data:`~booking_planner.core.schema.Decision`.

Planners are asked to reply with exactly one JSON object of one of these shapes::

    {"answer": "<final reply to user>"}
    {"tool": "<name>", "args": { ... }}
    {"delegate": "<sub-agent name>"}
    {"clarify": "<question for the user>", "candidates": ["<agent>", ...]}

Models are not always obedient, so the parser strips code fences and surrounding chatter before
validating.  Anything that still does not parse is treated as a plain text answer.
"""

import json
import logging
import re
from typing import (
    Any,
    List,
)

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
)

from booking_planner.core.schema import (
    ClarificationDecision,
    Decision,
    DelegationDecision,
    TextDecision,
    ToolCall,
    ToolCallDecision,
)

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.+?)```", re.DOTALL)


class PlannerResponse(BaseModel):
    """Validates planner responses from LLMs."""

    answer: str | None = None
    tool: str | None = None
    # Kept loose so a malformed payload still reaches the tool's schema check
    args: Any = Field(default_factory=dict)
    delegate: str | None = None
    clarify: str | None = None
    candidates: List[str] = Field(default_factory=list)


def sanitize_json_string(content: str) -> str:
    """Clean up JSON strings returned by LLMs."""
    # Strip markdown code blocks if present
    match = _FENCE_RE.search(content)
    if match:
        content = match.group(1).strip()

    # Remove control characters except whitespace
    content = "".join(ch for ch in content if ch >= " " or ch in "\n\r\t")

    # Keep only the outermost JSON object, ignoring braces inside strings
    open_idx = content.find("{")
    if open_idx < 0:
        return content
    depth = 0
    in_string = False
    escaped = False
    for i in range(open_idx, len(content)):
        ch = content[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return content[open_idx : i + 1]
    return content


def parse_decision(content: str) -> Decision:
    """Parse and validate one planner reply."""
    cleaned = sanitize_json_string(content.strip())
    try:
        parsed = PlannerResponse.model_validate_json(cleaned)
    except ValidationError as exc:
        logger.debug("Planner reply is not a decision object (%s); using it as text", exc)
        return TextDecision(text=content.strip())

    if parsed.tool:
        if isinstance(parsed.args, dict):
            return ToolCallDecision(call=ToolCall(name=parsed.tool, args=parsed.args))
        args_error = f"arguments must be a JSON object, got {json.dumps(parsed.args)}"
        return ToolCallDecision(call=ToolCall(name=parsed.tool, args_error=args_error))
    if parsed.delegate:
        return DelegationDecision(agent=parsed.delegate)
    if parsed.clarify:
        return ClarificationDecision(question=parsed.clarify, candidates=parsed.candidates)
    if parsed.answer is not None:
        return TextDecision(text=parsed.answer)

    logger.warning("Planner reply had no recognised key: %s", cleaned)
    return TextDecision(text=content.strip())
