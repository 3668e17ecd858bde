"""Request dependencies for the command routes."""

from fastapi import HTTPException, Request, status

from src.state import AppState


def get_app_state(request: Request) -> AppState:
    """Get the application state created during startup."""
    state: AppState | None = getattr(request.app.state, "app_state", None)
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Application state not initialized",
        )
    return state
