"""Audit context middleware - captures request metadata for audit logging."""

from asgi_correlation_id import correlation_id
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.assignx.core.audit_context import clear_audit_context, get_client_ip, set_audit_context


class AuditContextMiddleware(BaseHTTPMiddleware):
    """Capture client IP, user agent and request ID for the audit trail.

    Context is cleared after the request so nothing leaks between requests.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        clear_audit_context()
        try:
            set_audit_context(
                ip_address=get_client_ip(
                    request.headers.get("x-forwarded-for"),
                    request.client.host if request.client else None,
                ),
                user_agent=request.headers.get("user-agent"),
                request_id=correlation_id.get(),
            )
            return await call_next(request)
        finally:
            clear_audit_context()
