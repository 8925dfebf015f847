"""API package: provides FastAPI dependencies and route definitions for the application."""

from .dependencies import get_agent, get_current_user_id, get_repository  # noqa: F401
from .routes import router  # noqa: F401
