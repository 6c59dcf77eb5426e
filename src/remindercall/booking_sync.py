import asyncio
import httpx
import logging

logger = logging.getLogger(__name__)


class BookingSyncClient:
    """HTTP client for sending finalized call records to the bookings webhook.

    Retries once with a short backoff on failure and never raises: callers
    get ``{"success": False, "error": ...}`` instead.
    """

    RETRY_BACKOFF_S = 2.0

    def __init__(
        self,
        *,
        bookings_url: str,
        webhook_secret: str = "",
        timeout: float = 15.0,
    ):
        self.bookings_url = bookings_url
        self.secret = webhook_secret
        self.timeout = timeout

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.secret:
            headers["X-Webhook-Secret"] = self.secret
        return headers

    async def _post_with_retry(self, url: str, payload: dict, label: str) -> dict:
        """POST with one retry after a short backoff on failure."""
        for attempt in range(2):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    resp = await client.post(url, json=payload, headers=self._headers())
                    resp.raise_for_status()
                    if not resp.content:
                        return {"success": True}
                    return resp.json()
            except Exception as e:
                if isinstance(e, httpx.HTTPStatusError):
                    logger.warning("%s got HTTP %s: %s", label, e.response.status_code, e.response.text[:500])
                if attempt == 0:
                    logger.warning("%s failed (attempt 1), retrying in %.0fs: %s", label, self.RETRY_BACKOFF_S, e)
                    await asyncio.sleep(self.RETRY_BACKOFF_S)
                else:
                    logger.error("%s failed after retry: %s", label, e)
                    return {"success": False, "error": str(e)}
        return {"success": False, "error": "unreachable"}

    async def send_booking(self, payload: dict) -> dict:
        """Send one finalized call record."""
        return await self._post_with_retry(self.bookings_url, payload, f"Booking sync {payload.get('call_id', '')}")
