"""Serves the built kiosk front-end."""

from pathlib import Path
from typing import Any

from fastapi import APIRouter
from fastapi.responses import FileResponse

from cardbooth.errors import NotFoundError

router = APIRouter(tags=["frontend"])

# These will be set by the app during startup
_app_state: dict[str, Any] = {}


def set_app_state(static_dir: Path | None) -> None:
    """Set the directory holding the built front-end."""
    _app_state["static_dir"] = static_dir


@router.get("/{path:path}", include_in_schema=False)
async def spa_handler(path: str) -> FileResponse:
    """Serve a static asset, or index.html so client-side routes like /answer/<token> work."""
    static_dir: Path | None = _app_state.get("static_dir")
    if static_dir is None or not (static_dir / "index.html").is_file():
        raise NotFoundError("front-end not built")

    root = static_dir.resolve()
    candidate = (root / path).resolve()
    if path and candidate.is_file() and candidate.is_relative_to(root):
        return FileResponse(candidate)
    return FileResponse(root / "index.html")
