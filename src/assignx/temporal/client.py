"""Connection to the Temporal cluster that runs the auto-approval sweep.

The API only touches Temporal in the /health check, where an unreachable
cluster marks the service degraded: lifecycle actions keep working, but
delivered projects stop being auto-approved. The worker process uses the
same connection to register the auto-approval schedule and poll its queue.
"""

import asyncio

from temporalio.client import Client

from src.assignx.core.config import get_settings
from src.assignx.core.logging import get_logger

logger = get_logger(__name__)

_client: Client | None = None
_connect_lock = asyncio.Lock()


async def get_temporal_client() -> Client:
    """Return the process-wide client, connecting on first use.

    Raises whatever Client.connect raises when the cluster is unreachable;
    the next call tries again.
    """
    global _client
    async with _connect_lock:
        if _client is None:
            settings = get_settings()
            _client = await Client.connect(
                settings.temporal_host, namespace=settings.temporal_namespace
            )
            logger.info(
                "Connected to Temporal",
                host=settings.temporal_host,
                namespace=settings.temporal_namespace,
            )
    return _client


async def close_temporal_client() -> None:
    global _client
    if _client is not None:
        await _client.service_client.close()  # type: ignore[attr-defined]
        _client = None
