"""Capabilities the conversation engine consumes from its collaborators"""

from typing import Any, Optional, Protocol

from app.models.refinance import Language, Lead, RateQuote, SavingsResult


class MessagingError(Exception):
    """Raised when a chat message could not be delivered."""


class Messenger(Protocol):
    async def send_message(self, recipient_id: str, text: str) -> Any: ...


class RateLookup(Protocol):
    def lookup_best_rate(self, loan_amount: float) -> RateQuote: ...


class SummaryGenerator(Protocol):
    async def generate_persuasive_summary(
        self, result: SavingsResult, language: Language
    ) -> str: ...


class LeadSink(Protocol):
    async def submit_lead(self, lead: Lead) -> bool: ...


class ProfileStore(Protocol):
    def load_profile(self, chat_identity: str) -> Optional[dict[str, Any]]: ...

    def save_profile(self, chat_identity: str, fields: dict[str, Any]) -> bool: ...
