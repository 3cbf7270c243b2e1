"""Transactional email via the Resend API."""

import html
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError

import resend

from src.assignx.core.config import get_settings
from src.assignx.core.logging import get_logger

logger = get_logger(__name__)

_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")

_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_BUTTON_STYLE = (
    "background-color: #2563eb; color: white; padding: 12px 24px; "
    "text-decoration: none; border-radius: 6px; display: inline-block; font-weight: 500;"
)


def send_project_update_email(
    to: str,
    user_name: str,
    project_id: str,
    project_number: str,
    title: str,
    body: str,
) -> bool:
    """Email a participant about a project status change.

    Blocking; callers on the event loop should run it in a thread.

    Returns:
        True if the email was sent (or skipped because Resend is not configured),
        False on error or timeout.
    """
    settings = get_settings()

    if not settings.resend_api_key:
        logger.warning(
            "RESEND_API_KEY not set - email not sent",
            to=to,
            project_number=project_number,
        )
        return True

    resend.api_key = settings.resend_api_key
    project_url = f"{settings.app_url}/projects/{project_id}"

    def _send() -> None:
        resend.Emails.send(
            {
                "from": settings.email_from,
                "to": [to],
                "subject": f"[{project_number}] {title}",
                "html": _get_project_update_html(user_name, title, body, project_url),
            }
        )

    try:
        future = _email_executor.submit(_send)
        future.result(timeout=settings.email_send_timeout_seconds)
        logger.info("Project update email sent", to=to, project_number=project_number)
        return True
    except FuturesTimeoutError:
        logger.error("Email send timed out", to=to, timeout=settings.email_send_timeout_seconds)
        return False
    except Exception as e:
        logger.error("Failed to send project update email", to=to, error=str(e))
        return False


def _get_project_update_html(user_name: str, title: str, body: str, project_url: str) -> str:
    safe_name = html.escape(user_name)
    safe_title = html.escape(title)
    safe_body = html.escape(body)
    safe_url = html.escape(project_url, quote=True)
    return f"""<!DOCTYPE html>
<html>
<body style="{_BODY_STYLE}">
    <h2>{safe_title}</h2>
    <p>Hi {safe_name},</p>
    <p>{safe_body}</p>
    <p style="margin: 30px 0;">
        <a href="{safe_url}" style="{_BUTTON_STYLE}">View project</a>
    </p>
</body>
</html>"""
