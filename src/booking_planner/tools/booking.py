"""
Booking tools used by the ``Booker`` agent.

Both handlers are placeholders: they log the request and return a fixed confirmation code.  This is
where a real hotel or airline API would be called.
"""

import logging

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
)

from booking_planner.tools import ToolRegistry

logger = logging.getLogger(__name__)

HOTEL_CONFIRMATION = "CONF_HOTEL_98765"
FLIGHT_CONFIRMATION = "CONF_FLIGHT_12345"


class BookHotelArgs(BaseModel):
    """Arguments of ``bookHotel``."""

    model_config = ConfigDict(extra="forbid")

    location: str = Field(..., description="the location of the hotel")
    date: str = Field(..., description="the date of the booking")


class BookFlightArgs(BaseModel):
    """Arguments of ``bookFlight``."""

    model_config = ConfigDict(extra="forbid")

    origin: str = Field(..., description="the origin of the flight")
    destination: str = Field(..., description="the destination of the flight")
    date: str = Field(..., description="the date of the booking")


class BookingResult(BaseModel):
    """Structured result shared by the booking tools."""

    status: str
    report: str = ""
    error_message: str = ""


def book_hotel(arg: BookHotelArgs) -> BookingResult:
    """Book a hotel and return its confirmation."""
    logger.info("Booking hotel in %s on %s", arg.location, arg.date)
    return BookingResult(
        status="success",
        report=(
            f"Hotel booked in {arg.location} on {arg.date}. Confirmation: {HOTEL_CONFIRMATION}"
        ),
    )


def book_flight(arg: BookFlightArgs) -> BookingResult:
    """Book a flight and return its confirmation."""
    logger.info("Booking flight %s -> %s on %s", arg.origin, arg.destination, arg.date)
    return BookingResult(
        status="success",
        report=(
            f"Flight booked from {arg.origin} to {arg.destination} on {arg.date}. "
            f"Confirmation: {FLIGHT_CONFIRMATION}"
        ),
    )


def booking_tools() -> ToolRegistry:
    """Return a fresh registry holding ``bookHotel`` and ``bookFlight``."""
    registry = ToolRegistry()
    registry.tool(
        "bookHotel", "Use this function to book a hotel. Requires location and date."
    )(book_hotel)
    registry.tool(
        "bookFlight",
        "Use this function to book a flight. Requires origin, destination, and date.",
    )(book_flight)
    return registry
