"""Pytest configuration and fixtures for the FinZo refinance bot."""

import os

# Must be set before app.config builds its module-level settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["WHATSAPP_VERIFY_TOKEN"] = "verify-me"
os.environ["WHATSAPP_API_URL"] = ""
os.environ["WHATSAPP_ACCESS_TOKEN"] = ""
os.environ["OPENAI_API_KEY"] = ""

from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.config import Settings  # noqa: E402
from app.main import app  # noqa: E402
from app.models.database import (  # noqa: E402
    create_database_engine,
    create_tables,
    get_session_maker,
)
from app.services.conversation_service import ConversationService  # noqa: E402
from app.services.database_service import DatabaseService  # noqa: E402
from app.services.refinance_service import RefinanceCalculationService  # noqa: E402
from app.services.session_store import SessionStore  # noqa: E402
from tests.fakes import (  # noqa: E402
    ADMIN_CHAT_ID,
    PERSUASIVE_TEXT,
    FakeMessenger,
    FakeRateLookup,
)


@pytest.fixture
def test_settings() -> Settings:
    """Settings with synchronous lead delivery and no real endpoints."""
    return Settings(
        whatsapp_api_url="https://graph.example.test/v1/messages",
        whatsapp_access_token="test-token",
        whatsapp_verify_token="verify-me",
        admin_chat_id=ADMIN_CHAT_ID,
        portal_api_url="https://portal.example.test/api/leads",
        leads_api_key="test-key",
        database_url="sqlite://",
        background_lead_dispatch=False,
        enable_rate_limiting=False,
    )


@pytest.fixture
def db_service() -> DatabaseService:
    """Database service backed by a fresh in-memory SQLite database."""
    engine = create_database_engine("sqlite://")
    create_tables(engine)
    yield DatabaseService(get_session_maker(engine))
    engine.dispose()


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def rate_lookup() -> FakeRateLookup:
    return FakeRateLookup()


@pytest.fixture
def summary_generator() -> AsyncMock:
    generator = AsyncMock()
    generator.generate_persuasive_summary.return_value = PERSUASIVE_TEXT
    return generator


@pytest.fixture
def lead_sink() -> AsyncMock:
    sink = AsyncMock()
    sink.submit_lead.return_value = True
    return sink


@pytest.fixture
def session_store() -> SessionStore:
    return SessionStore()


@pytest.fixture
def calculator(rate_lookup, test_settings) -> RefinanceCalculationService:
    return RefinanceCalculationService(rate_lookup, test_settings)


@pytest.fixture
def conversation_service(
    session_store,
    messenger,
    calculator,
    summary_generator,
    lead_sink,
    db_service,
    test_settings,
) -> ConversationService:
    """Conversation service wired to fakes and an in-memory profile mirror."""
    return ConversationService(
        session_store=session_store,
        messenger=messenger,
        calculator=calculator,
        summary_generator=summary_generator,
        lead_sink=lead_sink,
        profile_store=db_service,
        settings=test_settings,
    )


@pytest_asyncio.fixture
async def client() -> AsyncClient:
    """Create an HTTP client for testing the API."""
    # Trigger app startup event to create database tables
    from app.main import startup_event

    await startup_event()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
