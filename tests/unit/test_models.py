"""Unit tests for conversation models and message rendering."""

import pytest
from pydantic import TypeAdapter, ValidationError

from app.models.refinance import (
    ConversationState,
    Language,
    Lead,
    LoanDetails,
    PathADetails,
    PathBDetails,
    Phase,
    Profile,
    SavingsResult,
)
from app.models.whatsapp import WebhookPayload
from app.utils.logger import mask_chat_id
from app.utils.translations import (
    format_currency,
    render_admin_alert,
    render_summary,
    translate,
)


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


@pytest.fixture
def completed_state(savings) -> ConversationState:
    return ConversationState(
        chat_identity="60123456789",
        phase=Phase.SUMMARY_DELIVERED,
        language=Language.ENGLISH,
        profile=Profile(
            name="Aisha",
            phone_number="60123456789",
            referral_code="REFABCDEFGH",
            loan=PathADetails(loan_amount=300000, tenure=20, interest_rate=4.5),
            savings=savings,
        ),
    )


class TestLoanDetails:
    def test_discriminator_selects_path(self):
        adapter = TypeAdapter(LoanDetails)

        assert isinstance(adapter.validate_python({"path": "A"}), PathADetails)
        assert isinstance(adapter.validate_python({"path": "B"}), PathBDetails)
        with pytest.raises(ValidationError):
            adapter.validate_python({"path": "C"})

    def test_completeness(self):
        details = PathBDetails(original_loan_amount=450000, original_tenure=25)
        assert not details.is_complete()

        details.monthly_payment = 2200
        details.years_paid = 5
        assert details.is_complete()
        assert details.headline_amount == 450000


class TestSavingsResult:
    def test_beneficial_requires_threshold(self, savings):
        assert savings.is_beneficial(10000)
        assert not savings.is_beneficial(30000)

    def test_negative_savings_never_beneficial(self, savings):
        worse = savings.model_copy(update={"monthly_savings": -5, "lifetime_savings": -1200})
        assert not worse.is_beneficial(0)


class TestProfileRecord:
    def test_record_covers_every_column(self, completed_state):
        record = completed_state.profile.to_record()

        assert record["loan_amount"] == 300000
        assert record["original_loan_amount"] is None
        assert record["monthly_savings"] == 111.45
        assert "path" not in record

    def test_reset_record_clears_loan_and_savings(self, completed_state):
        completed_state.reset()
        record = completed_state.profile.to_record()

        assert completed_state.phase == Phase.START
        assert record["name"] is None
        assert record["loan_amount"] is None
        assert record["lifetime_savings"] is None
        assert record["referral_code"] == "REFABCDEFGH"
        assert record["phone_number"] == "60123456789"


class TestLead:
    def test_from_state(self, completed_state):
        lead = Lead.from_state(completed_state)

        assert lead.loan_amount == 300000
        assert lead.estimated_savings == 26748.0
        assert lead.current_interest_rate == 4.5
        assert lead.path == "A"

    def test_is_frozen(self, completed_state):
        lead = Lead.from_state(completed_state)
        with pytest.raises(ValidationError):
            lead.name = "Someone else"

    def test_requires_savings(self, completed_state):
        completed_state.profile.savings = None
        with pytest.raises(ValueError):
            Lead.from_state(completed_state)

    def test_requires_complete_loan_details(self, completed_state):
        completed_state.profile.loan = PathADetails(loan_amount=300000, tenure=20)
        with pytest.raises(ValueError, match="incomplete"):
            Lead.from_state(completed_state)

    def test_portal_payload_defaults(self, completed_state):
        completed_state.profile.referral_code = None
        payload = Lead.from_state(completed_state).to_portal_payload()

        assert payload == {
            "name": "Aisha",
            "phone": "60123456789",
            "referrer_code": "N/A",
            "loan_amount": 300000,
            "estimated_savings": 26748.0,
            "language": "en",
        }


class TestRendering:
    @pytest.mark.parametrize(
        "value,expected",
        [(1234.5, "RM1,234.50"), (0, "RM0.00"), (-50, "-RM50.00"), (None, "RM0.00")],
    )
    def test_format_currency(self, value, expected):
        assert format_currency(value) == expected

    def test_summary_is_deterministic(self, savings):
        first = render_summary(savings, Language.CHINESE)
        second = render_summary(savings, Language.CHINESE)

        assert first == second
        assert "RM111.45" in first
        assert "Test Bank" in first
        assert "3.80%" in first

    def test_admin_alert_contents(self, completed_state):
        alert = render_admin_alert(Lead.from_state(completed_state))

        assert "New Lead Alert" in alert
        assert "Aisha" in alert
        assert "REFABCDEFGH" in alert
        assert "RM300,000.00" in alert
        assert "4.50%" in alert

    def test_translate_falls_back_to_english(self):
        assert translate("ASK_NAME", "fr") == translate("ASK_NAME", Language.ENGLISH)

    def test_chat_identity_masking(self):
        assert mask_chat_id("60123456789") == "6012345****"
        assert mask_chat_id("123") == "****"
        assert mask_chat_id(None) == ""


class TestWebhookPayload:
    def test_extracts_messages_from_all_entries(self):
        payload = WebhookPayload.model_validate(
            {
                "object": "whatsapp_business_account",
                "entry": [
                    {
                        "id": "1",
                        "changes": [
                            {
                                "field": "messages",
                                "value": {
                                    "messaging_product": "whatsapp",
                                    "metadata": {"phone_number_id": "123"},
                                    "messages": [
                                        {
                                            "from": "60123456789",
                                            "id": "wamid.1",
                                            "type": "text",
                                            "text": {"body": "Hi"},
                                        },
                                        {
                                            "from": "60123456789",
                                            "id": "wamid.2",
                                            "type": "image",
                                        },
                                    ],
                                },
                            }
                        ],
                    }
                ],
            }
        )

        messages = payload.messages()
        assert payload.is_whatsapp()
        assert [message.id for message in messages] == ["wamid.1", "wamid.2"]
        assert messages[0].from_ == "60123456789"
        assert messages[0].text.body == "Hi"
        assert messages[1].text is None

    def test_status_updates_have_no_messages(self):
        payload = WebhookPayload.model_validate(
            {
                "object": "whatsapp_business_account",
                "entry": [{"changes": [{"value": {"statuses": [{"id": "x"}]}}]}],
            }
        )
        assert payload.messages() == []
