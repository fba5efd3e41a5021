"""
Template rendering utilities
"""
from pathlib import Path

from fastapi.templating import Jinja2Templates

# backend/ubiquitous/core/templates.py -> backend/frontend/templates
BACKEND_DIR = Path(__file__).resolve().parent.parent.parent
TEMPLATES_DIR = BACKEND_DIR / "frontend" / "templates"
STATIC_DIR = BACKEND_DIR / "frontend" / "static"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def _status_badge(value) -> str:
    """CSS class for a status value"""
    value = getattr(value, "value", value) or ""
    return {
        "active": "badge-green",
        "approved": "badge-green",
        "confirmed": "badge-green",
        "open": "badge-blue",
        "pending": "badge-blue",
        "draft": "badge-grey",
        "on_hold": "badge-amber",
        "needs_update": "badge-amber",
        "needs_discussion": "badge-amber",
        "archived": "badge-red",
        "rejected": "badge-red",
        "closed": "badge-grey",
    }.get(str(value), "badge-grey")


def _format_datetime(value, fmt: str = "%Y-%m-%d %H:%M") -> str:
    if value is None:
        return ""
    return value.strftime(fmt)


templates.env.filters["status_badge"] = _status_badge
templates.env.filters["datetime"] = _format_datetime
