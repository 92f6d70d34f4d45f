"""Push notification delivery through an HTTP gateway."""

import logging

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class PushDeliveryError(Exception):
    """The push gateway answered with a non-2xx status."""


class PushService:
    def __init__(self, gateway_url: str | None = None, timeout: float = 10.0):
        self.gateway_url = gateway_url if gateway_url is not None else settings.PUSH_GATEWAY_URL
        self.timeout = timeout

    async def send_push(self, recipient: str, title: str, body: str) -> bool:
        if not self.gateway_url:
            logger.info("Push gateway not configured, skipping push to %s: %s", recipient, title)
            return True

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                self.gateway_url,
                json={"recipient": recipient, "title": title, "body": body},
            )

        if not 200 <= resp.status_code < 300:
            raise PushDeliveryError(
                f"Push gateway returned {resp.status_code}: {resp.text[:200] if resp.text else ''}"
            )
        logger.info("Push sent to %s: %s", recipient, title)
        return True
