"""Payment provider webhook.

The provider signs the raw request body with the shared webhook secret
(HMAC-SHA256, hex) and sends it in the X-Payment-Signature header.
"""

import hashlib
import hmac
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, status
from starlette.requests import Request

from src.assignx.api.dependencies import LifecycleServiceDep
from src.assignx.core.config import get_settings
from src.assignx.core.logging import bind_project_context, get_logger
from src.assignx.core.rate_limit import limiter
from src.assignx.schemas.payment import PaymentConfirmation
from src.assignx.schemas.project import ProjectRead
from src.assignx.services.notification_service import dispatch_in_background

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def sign_payload(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


@router.post(
    "/webhook",
    response_model=ProjectRead,
    responses={
        401: {"description": "Missing or invalid signature"},
        409: {"description": "Project is not awaiting payment"},
        422: {"description": "Amount does not match the quote"},
        503: {"description": "Webhook secret not configured"},
    },
)
@limiter.limit("60/minute")
async def payment_webhook(
    request: Request,
    data: PaymentConfirmation,
    service: LifecycleServiceDep,
    x_payment_signature: Annotated[str | None, Header()] = None,
) -> ProjectRead:
    """Confirm a settled payment. Retries with the same payment_id are no-ops."""
    secret = get_settings().payment_webhook_secret
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment webhook not configured",
        )

    expected = sign_payload(await request.body(), secret)
    if not x_payment_signature or not hmac.compare_digest(expected, x_payment_signature):
        logger.warning("Rejected payment webhook with bad signature", project_id=str(data.project_id))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid payment signature",
        )

    bind_project_context(data.project_id)
    try:
        project = await service.confirm_payment(data.project_id, data.amount, data.payment_id)
    finally:
        dispatch_in_background(service.take_outbox())
    return ProjectRead.model_validate(project)
