"""Leads portal client"""

from typing import Optional

import httpx

from app.config import Settings
from app.models.refinance import Lead
from app.utils.logger import LoggerMixin, log_outbound_call, mask_chat_id


class PortalService(LoggerMixin):
    """Submits completed leads to the CRM portal with bounded retries"""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.url = settings.portal_api_url
        self.api_key = settings.leads_api_key.strip()
        self.attempts = max(1, settings.lead_submit_attempts)
        self.timeout = settings.http_timeout_seconds
        self._client = client

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        return headers

    async def _post(self, payload: dict) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(
                self.url, json=payload, headers=self._headers(), timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.url, json=payload, headers=self._headers())

    async def submit_lead(self, lead: Lead) -> bool:
        """Post the lead; returns False after the last failed attempt"""
        payload = lead.to_portal_payload()
        call_logger = log_outbound_call(
            "leads_portal", url=self.url, chat_id=mask_chat_id(lead.chat_identity)
        )

        if not lead.phone or not lead.loan_amount:
            call_logger.error("Missing required lead data, not sending", payload=payload)
            return False

        for attempt in range(1, self.attempts + 1):
            try:
                response = await self._post(payload)
                response.raise_for_status()
                call_logger.info(
                    "Lead sent to portal", attempt=attempt, status_code=response.status_code
                )
                return True
            except httpx.HTTPError as e:
                call_logger.warning(
                    "Failed to send lead to portal", attempt=attempt, error=str(e)
                )

        call_logger.error("Giving up on lead submission", attempts=self.attempts)
        return False
