"""Jinja2 environment shared by public pages and notification e-mails."""

from pathlib import Path

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from app.config import settings
from app.utils.i18n import I18n

BASE_DIR = Path(__file__).resolve().parent

i18n = I18n.load(settings.APP_LANG)

templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))
templates.env.globals.update(
    L=i18n,
    root_url=settings.APP_BASE_URL,
    logo_url=settings.LOGO_URL,
    favicon_url=settings.FAVICON_URL,
    site_name=settings.SITE_NAME,
)


def render_message(
    request: Request,
    title: str,
    message: str,
    status_code: int = 200,
) -> HTMLResponse:
    """Render the generic title + message page."""
    return templates.TemplateResponse(
        request,
        "message.html",
        {"title": title, "message": message},
        status_code=status_code,
    )


def render_notification(name: str, data: dict) -> str:
    """Render a notification e-mail body from templates/notifications/."""
    return templates.get_template(f"notifications/{name}.html").render(**data)
