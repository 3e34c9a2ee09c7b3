"""FastAPI dependencies for injection into route handlers."""

from fastapi import Request

from clubbook.services.availability import AvailabilityService


def get_availability(request: Request) -> AvailabilityService:
    """The engine built by the application lifespan. Overridden in tests."""
    return request.app.state.availability
