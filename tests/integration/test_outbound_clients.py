"""Integration tests for the WhatsApp, leads portal and LLM adapters."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from app.models.refinance import Language, Lead, SavingsResult
from app.services.interfaces import MessagingError
from app.services.llm_service import PersuasionService
from app.services.portal_service import PortalService
from app.services.whatsapp_service import WhatsAppClient


def make_lead(**overrides) -> Lead:
    fields = dict(
        chat_identity="60123456789",
        name="Aisha",
        phone="60123456789",
        referrer_code="REFABCDEFGH",
        loan_amount=300000,
        estimated_savings=26748.0,
        monthly_savings=111.45,
        yearly_savings=1337.4,
        new_monthly_repayment=1786.5,
        current_interest_rate=4.5,
        current_repayment=1897.95,
        lender_name="Test Bank",
        language=Language.ENGLISH,
        path="A",
    )
    fields.update(overrides)
    return Lead(**fields)


@pytest.fixture
def savings() -> SavingsResult:
    return SavingsResult(
        monthly_savings=111.45,
        yearly_savings=1337.4,
        lifetime_savings=26748.0,
        new_monthly_repayment=1786.5,
        new_interest_rate=3.8,
        lender_name="Test Bank",
        current_repayment=1897.95,
    )


class TestWhatsAppClient:
    @pytest.mark.asyncio
    async def test_sends_text_message(self, test_settings):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"messages": [{"id": "wamid.out"}]})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = WhatsAppClient(test_settings, client=http)
            result = await client.send_message("60123456789", "Hello there")

        assert result == {"messages": [{"id": "wamid.out"}]}
        request = requests[0]
        assert str(request.url) == test_settings.whatsapp_api_url
        assert request.headers["Authorization"] == "Bearer test-token"
        assert json.loads(request.content) == {
            "messaging_product": "whatsapp",
            "to": "60123456789",
            "type": "text",
            "text": {"body": "Hello there"},
        }

    @pytest.mark.asyncio
    async def test_http_error_raises_messaging_error(self, test_settings):
        transport = httpx.MockTransport(lambda request: httpx.Response(401))

        async with httpx.AsyncClient(transport=transport) as http:
            client = WhatsAppClient(test_settings, client=http)
            with pytest.raises(MessagingError):
                await client.send_message("60123456789", "Hello there")

    @pytest.mark.asyncio
    async def test_unconfigured_client_raises(self, test_settings):
        test_settings.whatsapp_access_token = ""

        with pytest.raises(MessagingError):
            await WhatsAppClient(test_settings).send_message("60123456789", "Hi")


class TestPortalService:
    @pytest.mark.asyncio
    async def test_submits_lead_payload(self, test_settings):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(201, json={"ok": True})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            portal = PortalService(test_settings, client=http)
            assert await portal.submit_lead(make_lead()) is True

        assert len(requests) == 1
        assert requests[0].headers["X-API-KEY"] == "test-key"
        assert json.loads(requests[0].content) == make_lead().to_portal_payload()

    @pytest.mark.asyncio
    async def test_retries_until_success(self, test_settings):
        statuses = iter([500, 502, 200])
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(next(statuses))

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            portal = PortalService(test_settings, client=http)
            assert await portal.submit_lead(make_lead()) is True

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_three_attempts(self, test_settings):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            portal = PortalService(test_settings, client=http)
            assert await portal.submit_lead(make_lead()) is False

        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_incomplete_lead_is_not_sent(self, test_settings):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            portal = PortalService(test_settings, client=http)
            assert await portal.submit_lead(make_lead(phone=None)) is False

        assert calls == []

    @pytest.mark.asyncio
    async def test_no_api_key_header_when_unset(self, test_settings):
        test_settings.leads_api_key = "  "
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            await PortalService(test_settings, client=http).submit_lead(make_lead())

        assert "X-API-KEY" not in requests[0].headers


class TestPersuasionService:
    @pytest.mark.asyncio
    async def test_generates_message(self, test_settings, savings):
        llm = AsyncMock()
        llm.ainvoke.return_value = SimpleNamespace(content="  Save big today.  ")
        service = PersuasionService(test_settings, llm=llm)

        message = await service.generate_persuasive_summary(savings, Language.MALAY)

        assert message == "Save big today."
        system, human = llm.ainvoke.await_args.args[0]
        assert "Bahasa Melayu" in system.content
        assert "RM111.45" in human.content
        assert "3.80%" in human.content
        assert "Test Bank" in human.content

    @pytest.mark.asyncio
    async def test_empty_response_raises(self, test_settings, savings):
        llm = AsyncMock()
        llm.ainvoke.return_value = SimpleNamespace(content="")
        service = PersuasionService(test_settings, llm=llm)

        with pytest.raises(ValueError):
            await service.generate_persuasive_summary(savings, Language.ENGLISH)

    def test_llm_is_built_lazily(self, test_settings):
        with patch("app.services.llm_service.ChatOpenAI") as chat_openai:
            service = PersuasionService(test_settings)
            chat_openai.assert_not_called()

            assert service.llm is chat_openai.return_value
            assert service.llm is chat_openai.return_value

        chat_openai.assert_called_once()
        assert chat_openai.call_args.kwargs["model"] == test_settings.openai_model
