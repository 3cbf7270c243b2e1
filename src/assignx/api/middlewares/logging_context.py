"""Per-request structlog context.

Every log line written while serving a request carries its request_id and
request line. The auth dependency adds user_id and role, and lifecycle
routes add project_id, so transition logs can be traced to the call that
caused them.
"""

from asgi_correlation_id import correlation_id
from fastapi import Request, Response
from starlette.middleware.base import RequestResponseEndpoint

from src.assignx.core.logging import bind_request_context, clear_request_context


async def logging_context_middleware(
    request: Request, call_next: RequestResponseEndpoint
) -> Response:
    # Context vars leak between requests served by the same task
    clear_request_context()
    bind_request_context(correlation_id.get(), method=request.method, path=request.url.path)
    try:
        return await call_next(request)
    finally:
        clear_request_context()
