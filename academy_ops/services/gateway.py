"""
Notification / calendar gateway

Delivers trigger effects to external webhooks (parent messaging, calendar).
Delivery is fire-and-forget from the caller's point of view: ``dispatch``
never raises, it reports failures in the returned ``DispatchResult``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import CALENDAR_WEBHOOK_URL, GATEWAY_TIMEOUT_SECONDS, NOTIFICATION_WEBHOOK_URL

logger = logging.getLogger(__name__)

CALENDAR_KINDS = ("calendar_event",)


@dataclass
class DispatchResult:
    ok: bool
    error: Optional[str] = None


class WebhookGateway:
    """POSTs ``{"kind", "payload"}`` JSON to the configured webhook"""

    def __init__(
        self,
        notification_url: Optional[str] = NOTIFICATION_WEBHOOK_URL,
        calendar_url: Optional[str] = CALENDAR_WEBHOOK_URL,
        timeout: float = GATEWAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.notification_url = notification_url
        self.calendar_url = calendar_url
        self.timeout = timeout
        self.transport = transport

    def url_for(self, kind: str) -> Optional[str]:
        return self.calendar_url if kind in CALENDAR_KINDS else self.notification_url

    async def dispatch(self, kind: str, payload: dict) -> DispatchResult:
        url = self.url_for(kind)
        if not url:
            logger.warning(f"No webhook configured for {kind}, effect not delivered")
            return DispatchResult(ok=False, error="webhook not configured")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json={"kind": kind, "payload": payload})
        except httpx.HTTPError as e:
            logger.error(f"Gateway dispatch failed for {kind}: {str(e)}")
            return DispatchResult(ok=False, error=str(e) or e.__class__.__name__)

        if response.status_code >= 300:
            logger.error(f"Gateway rejected {kind}: HTTP {response.status_code} {response.text[:200]}")
            return DispatchResult(ok=False, error=f"HTTP {response.status_code}")

        logger.info(f"Gateway delivered {kind} (HTTP {response.status_code})")
        return DispatchResult(ok=True)


_gateway: Optional[WebhookGateway] = None


def get_gateway() -> WebhookGateway:
    """Process-wide gateway built from config"""
    global _gateway
    if _gateway is None:
        _gateway = WebhookGateway()
    return _gateway
