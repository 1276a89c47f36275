"""
Tool registry for booking_planner.

A :class:`ToolRegistry` maps a tool name to a :class:`ToolDescriptor` and a handler.  Each handler
takes exactly one argument: an instance of the descriptor's ``args_model`` (a pydantic model whose
fields *are* the tool's argument schema).  Raw arguments coming from the planner are validated
against that model before the handler runs.

Registries are plain objects owned by an agent; there is no process-wide registry.
"""

import inspect
import logging
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    Tuple,
    get_type_hints,
)

from pydantic import (
    BaseModel,
    ValidationError,
)

from booking_planner.core.errors import (
    ConfigurationError,
    DuplicateToolName,
    HandlerError,
    SchemaValidationError,
    UnknownTool,
)
from booking_planner.core.schema import ToolDescriptor

logger = logging.getLogger(__name__)

ToolHandler = Callable[[Any], Any]


def _handler_input_model(handler: Callable) -> Any:
    """Return the annotation of *handler*'s single parameter (or ``None``)."""
    params = list(inspect.signature(handler).parameters.values())
    if len(params) != 1:
        return None
    try:
        hints = get_type_hints(handler)
    except (NameError, TypeError):
        return None
    return hints.get(params[0].name)


def function_tool(name: str, description: str, handler: ToolHandler) -> ToolDescriptor:
    """
    Build a descriptor from *handler*'s annotation.

    The handler must accept exactly one parameter annotated with a pydantic model class.

    Raises
    ------
    ConfigurationError
        If the handler's signature does not declare such a model.
    """
    model = _handler_input_model(handler)
    if not (inspect.isclass(model) and issubclass(model, BaseModel)):
        raise ConfigurationError(
            f"Tool '{name}' handler must take one argument annotated with a pydantic model."
        )
    return ToolDescriptor(
        name=name, description=description or (handler.__doc__ or "").strip(), args_model=model
    )


def _error_message(result: Any) -> str | None:
    """Handlers may report failure in-band with ``status="error"``."""
    if isinstance(result, BaseModel):
        result = result.model_dump()
    if isinstance(result, Mapping) and result.get("status") == "error":
        return str(result.get("error_message") or "handler reported an error")
    return None


class ToolRegistry:
    """Named, schema-typed tools available to one agent."""

    def __init__(self) -> None:
        self._tools: Dict[str, Tuple[ToolDescriptor, ToolHandler]] = {}

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    def register(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        """
        Register *handler* under ``descriptor.name``.

        Raises
        ------
        DuplicateToolName
            If a tool with the same name is already registered; the registry is left unchanged.
        ConfigurationError
            If the descriptor's schema does not match the handler's input.
        """
        if not descriptor.name or not descriptor.name.strip():
            raise ConfigurationError("Tool name must not be empty.")
        if descriptor.name in self._tools:
            raise DuplicateToolName(f"Tool '{descriptor.name}' is already registered.")
        if _handler_input_model(handler) is not descriptor.args_model:
            raise ConfigurationError(
                f"Tool '{descriptor.name}' schema {descriptor.args_model.__name__} does not match "
                "the handler's input parameter."
            )
        logger.debug("Registering tool '%s'", descriptor.name)
        self._tools[descriptor.name] = (descriptor, handler)

    def tool(self, name: str, description: str = "") -> Callable[[ToolHandler], ToolHandler]:
        """
        Register a tool function with the given name.

        Used as a decorator::

            @registry.tool("bookHotel", "Book a hotel.")
            def book_hotel(arg: BookHotelArgs) -> BookingResult:
                ...
        """

        def wrapper(fn: ToolHandler) -> ToolHandler:
            self.register(function_tool(name, description, fn), fn)
            return fn

        return wrapper

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #
    def get(self, name: str) -> ToolDescriptor:
        """Return the descriptor registered under *name*."""
        try:
            return self._tools[name][0]
        except KeyError:
            raise UnknownTool(f"Tool '{name}' is not registered.") from None

    def descriptors(self) -> List[ToolDescriptor]:
        """Return all descriptors in registration order."""
        return [descriptor for descriptor, _ in self._tools.values()]

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    # ------------------------------------------------------------------ #
    # Invocation
    # ------------------------------------------------------------------ #
    def invoke(self, name: str, raw_arguments: Mapping[str, Any] | None = None) -> Any:
        """
        Validate *raw_arguments* against the tool's schema and call its handler.

        Returns
        -------
        Any
            Whatever the handler returns, unmodified.

        Raises
        ------
        UnknownTool
            If *name* is not registered.
        SchemaValidationError
            If the arguments cannot be coerced to the declared schema.
        HandlerError
            If the handler raises or reports ``status="error"``.
        """
        entry = self._tools.get(name)
        if entry is None:
            raise UnknownTool(f"Tool '{name}' is not registered.")
        descriptor, handler = entry

        try:
            args = descriptor.args_model.model_validate(dict(raw_arguments or {}))
        except ValidationError as exc:
            raise SchemaValidationError(name, str(exc)) from exc

        try:
            logger.debug("Executing tool '%s' with args=%s", name, args)
            result = handler(args)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unhandled error in tool '%s'", name)
            raise HandlerError(name, str(exc)) from exc

        message = _error_message(result)
        if message is not None:
            raise HandlerError(name, message)
        return result
