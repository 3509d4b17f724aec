"""Pydantic models for the subset of the WhatsApp Cloud API webhook we consume"""

from pydantic import BaseModel, ConfigDict, Field


class _Lenient(BaseModel):
    model_config = ConfigDict(extra="ignore")


class TextBody(_Lenient):
    body: str


class InboundMessage(_Lenient):
    from_: str = Field(..., alias="from")
    id: str | None = None
    type: str = "text"
    text: TextBody | None = None


class ChangeValue(_Lenient):
    messaging_product: str | None = None
    messages: list[InboundMessage] = Field(default_factory=list)


class Change(_Lenient):
    field: str | None = None
    value: ChangeValue = Field(default_factory=ChangeValue)


class Entry(_Lenient):
    id: str | None = None
    changes: list[Change] = Field(default_factory=list)


class WebhookPayload(_Lenient):
    object: str | None = None
    entry: list[Entry] = Field(default_factory=list)

    def is_whatsapp(self) -> bool:
        return self.object == "whatsapp_business_account"

    def messages(self) -> list[InboundMessage]:
        return [
            message
            for entry in self.entry
            for change in entry.changes
            for message in change.value.messages
        ]
