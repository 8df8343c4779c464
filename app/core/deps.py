"""Request-scoped dependencies shared by the API routers."""

from fastapi import Request

from app.core.config import Settings


def get_app_settings(request: Request) -> Settings:
    """Dependency: settings the app was created with."""
    return request.app.state.settings
