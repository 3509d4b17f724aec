"""Integration tests for the profile mirror and bank-rate lookup"""

from unittest.mock import Mock

import pytest
from sqlalchemy.exc import OperationalError

from app.models.refinance import Phase
from app.services.bank_rate_service import BankRateService
from app.services.conversation_service import ConversationService
from app.services.refinance_service import RefinanceCalculationService
from tests.fakes import CHAT_ID


@pytest.fixture
def bank_rate_service(db_service, test_settings):
    db_service.add_bank_rate("Big Bank", 100000, 500000, 3.9)
    db_service.add_bank_rate("Cheap Bank", 200000, 400000, 3.6)
    db_service.add_bank_rate("Jumbo Bank", 500001, 30000000, 3.7)
    return BankRateService(db_service, test_settings)


class TestProfilePersistence:
    """Test the durable profile mirror"""

    def test_save_and_load_profile(self, db_service):
        assert db_service.save_profile(
            CHAT_ID, {"name": "Aisha", "phase": "COLLECT_NAME", "language": "en"}
        )

        stored = db_service.load_profile(CHAT_ID)

        assert stored["chat_identity"] == CHAT_ID
        assert stored["name"] == "Aisha"
        assert stored["phase"] == "COLLECT_NAME"
        assert stored["created_at"] is not None
        assert stored["last_interaction_at"] is not None

    def test_save_is_an_upsert(self, db_service):
        db_service.save_profile(CHAT_ID, {"name": "Aisha", "referral_code": "REFABCDEFGH"})
        db_service.save_profile(CHAT_ID, {"name": None, "loan_amount": 300000})

        stored = db_service.load_profile(CHAT_ID)

        assert stored["name"] is None
        assert stored["loan_amount"] == 300000
        assert stored["referral_code"] == "REFABCDEFGH"

    def test_unknown_fields_are_ignored(self, db_service):
        assert db_service.save_profile(CHAT_ID, {"name": "Aisha", "favourite_colour": "blue"})
        assert "favourite_colour" not in db_service.load_profile(CHAT_ID)

    def test_missing_profile(self, db_service):
        assert db_service.load_profile("unknown") is None

    def test_database_errors_are_reported_not_raised(self, db_service):
        db_service.session_factory = Mock(
            side_effect=OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        )

        assert db_service.save_profile(CHAT_ID, {"name": "Aisha"}) is False
        assert db_service.load_profile(CHAT_ID) is None

    def test_connection_check(self, db_service):
        assert db_service.check_connection() is True

        db_service.session_factory = Mock(
            side_effect=OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        )

        assert db_service.check_connection() is False


class TestBankRates:
    """Test best-rate selection"""

    def test_lowest_rate_in_band_wins(self, bank_rate_service):
        quote = bank_rate_service.lookup_best_rate(300000)

        assert quote.rate == 3.6
        assert quote.lender_name == "Cheap Bank"

    def test_band_edges_are_inclusive(self, bank_rate_service):
        assert bank_rate_service.lookup_best_rate(100000).lender_name == "Big Bank"
        assert bank_rate_service.lookup_best_rate(500000).lender_name == "Big Bank"

    def test_no_matching_band_falls_back(self, bank_rate_service, test_settings):
        quote = bank_rate_service.lookup_best_rate(50000)

        assert quote.rate == test_settings.default_rate
        assert quote.lender_name == test_settings.default_lender_name

    def test_invalid_amount_falls_back(self, bank_rate_service, test_settings):
        assert bank_rate_service.lookup_best_rate(0) == bank_rate_service.default_quote()
        assert bank_rate_service.lookup_best_rate(-1).rate == test_settings.default_rate

    def test_query_failure_falls_back(self, db_service, test_settings):
        db_service.session_factory = Mock(
            side_effect=OperationalError("SELECT 1", {}, Exception("no such table"))
        )
        service = BankRateService(db_service, test_settings)

        assert service.lookup_best_rate(300000) == service.default_quote()


class TestConversationPersistence:
    """End-to-end conversation against the real rate table and profile mirror"""

    @pytest.mark.asyncio
    async def test_completed_path_a_is_mirrored(
        self,
        session_store,
        messenger,
        summary_generator,
        lead_sink,
        db_service,
        bank_rate_service,
        test_settings,
    ):
        service = ConversationService(
            session_store=session_store,
            messenger=messenger,
            calculator=RefinanceCalculationService(bank_rate_service, test_settings),
            summary_generator=summary_generator,
            lead_sink=lead_sink,
            profile_store=db_service,
            settings=test_settings,
        )

        for text in ["Hi", "1", "Aisha", "1", "300000", "20", "4.5"]:
            await service.process_inbound_text(CHAT_ID, text)

        stored = db_service.load_profile(CHAT_ID)
        assert stored["phase"] == Phase.DONE.value
        assert stored["language"] == "en"
        assert stored["lender_name"] == "Cheap Bank"
        assert stored["monthly_savings"] > 0
        assert stored["tenure"] == 20
        assert stored["original_tenure"] is None
        lead_sink.submit_lead.assert_awaited_once()
