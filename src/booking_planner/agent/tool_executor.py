"""Dispatches planner tool calls to an agent's registry and turns the outcome into a run event."""

import logging

from booking_planner.core.errors import (
    HandlerError,
    SchemaValidationError,
)
from booking_planner.core.schema import (
    ToolCall,
    ToolCallEvent,
)
from booking_planner.tools import ToolRegistry

logger = logging.getLogger(__name__)


def execute_tool(
    registry: ToolRegistry, call: ToolCall, author: str, invocation_id: str = ""
) -> ToolCallEvent:
    """
    Look up ``call.name`` in *registry* and invoke it with ``call.args``.

    Parameters
    ----------
    registry:
        The calling agent's tools.
    call:
        The tool call requested by the planner.
    author, invocation_id:
        Stamped on the returned event.

    Returns
    -------
    ToolCallEvent
        Carries the handler's result, or the error message when the arguments did not match the
        schema (or were not an object at all) or the handler failed.  Both failures are fed back to
        the planner, never retried.

    Raises
    ------
    UnknownTool
        If the tool is not registered.  This is a configuration error and is surfaced as-is.
    """
    try:
        if call.args_error is not None:
            registry.get(call.name)  # unknown tools still propagate
            raise SchemaValidationError(call.name, call.args_error)
        result = registry.invoke(call.name, call.args)
    except (SchemaValidationError, HandlerError) as exc:
        logger.warning("Tool failure in agent '%s': %s", author, exc)
        return ToolCallEvent(
            author=author,
            invocation_id=invocation_id,
            tool=call.name,
            args=call.args,
            error=str(exc),
        )

    logger.info("Tool '%s' returned: %s", call.name, result)
    return ToolCallEvent(
        author=author, invocation_id=invocation_id, tool=call.name, args=call.args, result=result
    )
