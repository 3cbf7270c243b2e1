"""Notification utilities - email."""

from src.assignx.core.notifications.email import send_project_update_email

__all__ = [
    "send_project_update_email",
]
