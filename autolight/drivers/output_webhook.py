from __future__ import annotations

import logging

import httpx

from ..domain.models import OutputPair

logger = logging.getLogger(__name__)


class WebhookOutputSink:
    """Posts the light and status channels to a downstream HTTP endpoint."""

    sink_id = "webhook"

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:1880/autolight",
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def send(self, outputs: OutputPair) -> None:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            if outputs.primary is not None:
                await self._post(
                    client,
                    "light",
                    {
                        "light": outputs.primary.light.value,
                        "reason": outputs.primary.reason.value,
                    },
                )
            await self._post(
                client,
                "status",
                {"colorHint": outputs.status.color_hint, "text": outputs.status.text},
            )

    async def _post(self, client: httpx.AsyncClient, channel: str, payload: dict) -> None:
        try:
            resp = await client.post(f"{self._base_url}/{channel}", json=payload)
            resp.raise_for_status()
            logger.info("Webhook %s sent: %s", channel, payload)
        except httpx.HTTPError:
            logger.warning(
                "Webhook %s post failed, payload=%s",
                channel,
                payload,
                exc_info=True,
            )
