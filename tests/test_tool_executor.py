"""
Tests for the tool registry and the tool executor.

Run with:
$ pytest -q
"""

import pytest
from pydantic import BaseModel

from booking_planner.agent.tool_executor import execute_tool
from booking_planner.core.errors import (
    ConfigurationError,
    DuplicateToolName,
    HandlerError,
    SchemaValidationError,
    UnknownTool,
)
from booking_planner.core.schema import (
    ToolCall,
    ToolDescriptor,
)
from booking_planner.tools import (
    ToolRegistry,
    function_tool,
)
from booking_planner.tools.booking import (
    BookHotelArgs,
    BookingResult,
    booking_tools,
)


class AddArgs(BaseModel):
    a: int
    b: int


class Sum(BaseModel):
    total: int


# This is a stub tool for testing purposes.
def _add(arg: AddArgs) -> Sum:
    """Return the sum of two integers (used only for tests)."""

    return Sum(total=arg.a + arg.b)


def _boom(arg: AddArgs) -> Sum:
    raise RuntimeError("disk on fire")


@pytest.fixture
def registry() -> ToolRegistry:
    reg = ToolRegistry()
    reg.tool("add", "Add two integers.")(_add)
    return reg


def test_invoke_returns_handler_result_unmodified(registry: ToolRegistry) -> None:
    """Valid payloads reach the handler and its result comes back as-is."""

    result = registry.invoke("add", {"a": 2, "b": 3})
    assert result == Sum(total=5)


def test_invoke_coerces_arguments(registry: ToolRegistry) -> None:
    """Arguments are coerced to the declared types."""

    assert registry.invoke("add", {"a": "2", "b": 3}).total == 5


def test_duplicate_name_leaves_registry_unchanged(registry: ToolRegistry) -> None:
    """Registering the same name twice fails and keeps the original handler."""

    with pytest.raises(DuplicateToolName):
        registry.register(function_tool("add", "Another add.", _boom), _boom)

    assert registry.names() == ["add"]
    assert registry.get("add").description == "Add two integers."
    assert registry.invoke("add", {"a": 1, "b": 1}).total == 2


def test_unknown_tool(registry: ToolRegistry) -> None:
    """Invoking a missing tool raises *UnknownTool*."""

    with pytest.raises(UnknownTool) as exc_info:
        registry.invoke("not_a_tool", {})
    assert "not_a_tool" in str(exc_info.value)


def test_bad_args(registry: ToolRegistry) -> None:
    """Missing or uncoercible arguments raise *SchemaValidationError*."""

    with pytest.raises(SchemaValidationError) as exc_info:
        registry.invoke("add", {"a": 2})  # missing 'b'
    assert exc_info.value.tool == "add"

    with pytest.raises(SchemaValidationError):
        registry.invoke("add", {"a": "two", "b": 3})


def test_handler_exception_becomes_handler_error() -> None:
    """Exceptions raised by the handler are wrapped, never swallowed."""

    reg = ToolRegistry()
    reg.tool("boom")(_boom)
    with pytest.raises(HandlerError) as exc_info:
        reg.invoke("boom", {"a": 1, "b": 2})
    assert "disk on fire" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_handler_reported_error_becomes_handler_error() -> None:
    """A result with status="error" is surfaced as a failure."""

    def sold_out(arg: BookHotelArgs) -> BookingResult:
        return BookingResult(status="error", error_message="no rooms left")

    reg = ToolRegistry()
    reg.tool("bookHotel")(sold_out)
    with pytest.raises(HandlerError, match="no rooms left"):
        reg.invoke("bookHotel", {"location": "London", "date": "2025-11-14"})


def test_schema_must_match_handler_input() -> None:
    """A descriptor whose args model differs from the handler's input is rejected."""

    reg = ToolRegistry()
    descriptor = ToolDescriptor(name="add", description="", args_model=BookHotelArgs)
    with pytest.raises(ConfigurationError):
        reg.register(descriptor, _add)
    assert len(reg) == 0


def test_handler_without_model_annotation_is_rejected() -> None:
    def untyped(a, b):
        return a + b

    with pytest.raises(ConfigurationError):
        function_tool("untyped", "", untyped)


def test_descriptor_parameters() -> None:
    """The argument schema lists every field with type and description."""

    params = booking_tools().get("bookHotel").parameters()
    assert params == {
        "location": {"type": "str", "description": "the location of the hotel", "required": True},
        "date": {"type": "str", "description": "the date of the booking", "required": True},
    }


def test_booking_tools_fabricate_confirmations() -> None:
    tools = booking_tools()
    hotel = tools.invoke("bookHotel", {"location": "London", "date": "2025-11-14"})
    flight = tools.invoke(
        "bookFlight", {"origin": "Paris", "destination": "London", "date": "2025-11-14"}
    )
    assert hotel.status == "success"
    assert "CONF_HOTEL_98765" in hotel.report
    assert "Flight booked from Paris to London on 2025-11-14" in flight.report
    assert "CONF_FLIGHT_12345" in flight.report


def test_booking_tools_reject_unknown_fields() -> None:
    with pytest.raises(SchemaValidationError):
        booking_tools().invoke(
            "bookHotel", {"location": "London", "date": "2025-11-14", "stars": 5}
        )


def test_execute_tool_success(registry: ToolRegistry) -> None:
    """Executor returns an event carrying the result."""

    event = execute_tool(registry, ToolCall(name="add", args={"a": 2, "b": 3}), author="Calc")
    assert event.ok
    assert event.author == "Calc"
    assert event.tool == "add"
    assert event.result == Sum(total=5)


def test_execute_tool_failures_become_events(registry: ToolRegistry) -> None:
    """Schema and handler failures are reported in the event instead of raised."""

    registry.tool("boom")(_boom)
    bad_args = execute_tool(registry, ToolCall(name="add", args={"a": 2}), author="Calc")
    crashed = execute_tool(registry, ToolCall(name="boom", args={"a": 1, "b": 1}), author="Calc")
    assert not bad_args.ok and "Invalid arguments" in bad_args.error
    assert not crashed.ok and "disk on fire" in crashed.error


def test_execute_tool_missing(registry: ToolRegistry) -> None:
    """Unknown tools are configuration errors and propagate."""

    with pytest.raises(UnknownTool):
        execute_tool(registry, ToolCall(name="not_a_tool"), author="Calc")
