"""FastAPI backend exposing ``POST /generate``."""

from .app import GenerateRequest, GenerateResponse, create_app

__all__ = ["GenerateRequest", "GenerateResponse", "create_app"]
