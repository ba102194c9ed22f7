"""API routers for the signage player FastAPI application."""

from . import status, widgets

__all__ = ["status", "widgets"]
