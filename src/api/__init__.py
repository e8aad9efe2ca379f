"""API module -- FastAPI application, dependencies and routes."""

from src.api.app import create_app

__all__ = ["create_app"]
