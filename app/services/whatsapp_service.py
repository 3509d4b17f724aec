"""WhatsApp Cloud API client"""

from typing import Any, Optional

import httpx

from app.config import Settings
from app.services.interfaces import MessagingError
from app.utils.logger import LoggerMixin, log_outbound_call, mask_chat_id


class WhatsAppClient(LoggerMixin):
    """Sends text messages through the WhatsApp Cloud API"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.api_url = settings.whatsapp_api_url
        self.access_token = settings.whatsapp_access_token
        self.timeout = settings.http_timeout_seconds
        self._client = client

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    async def _post(self, payload: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(
                self.api_url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.api_url, json=payload, headers=self._headers())

    async def send_message(self, recipient_id: str, text: str) -> dict[str, Any]:
        call_logger = log_outbound_call(
            "whatsapp", url=self.api_url, recipient=mask_chat_id(recipient_id)
        )
        if not self.api_url or not self.access_token:
            call_logger.error("WhatsApp API is not configured")
            raise MessagingError("WhatsApp API URL or access token is not configured")

        payload = {
            "messaging_product": "whatsapp",
            "to": recipient_id,
            "type": "text",
            "text": {"body": text},
        }

        try:
            response = await self._post(payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            call_logger.error("Failed to send WhatsApp message", error=str(e))
            raise MessagingError(str(e)) from e

        call_logger.info("WhatsApp message sent", length=len(text))
        try:
            return response.json()
        except ValueError:
            return {}
