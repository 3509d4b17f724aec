"""Serializes conversation turns per chat identity"""

from app.services.conversation_service import ConversationService
from app.services.session_store import SessionStore
from app.utils.logger import LoggerMixin, mask_chat_id, turn_context


class TurnDispatcher(LoggerMixin):
    """Runs at most one turn per chat identity at a time.

    Turns for different identities proceed concurrently; turns for the same
    identity run in arrival order under that identity's lock.
    """

    def __init__(
        self, session_store: SessionStore, conversation_service: ConversationService
    ):
        self.session_store = session_store
        self.conversation_service = conversation_service

    async def dispatch(self, chat_identity: str, text: str) -> None:
        lock = self.session_store.turn_lock(chat_identity)
        if lock.locked():
            self.logger.debug(
                "Turn queued behind an active turn", chat_id=mask_chat_id(chat_identity)
            )
        async with lock:
            with turn_context(chat_identity):
                await self.conversation_service.process_inbound_text(
                    chat_identity, text
                )
