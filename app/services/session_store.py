"""In-memory conversation states keyed by chat identity"""

import asyncio
import threading
from typing import Optional

from app.models.refinance import ConversationState, Profile
from app.utils.logger import LoggerMixin, mask_chat_id


def phone_from_chat_id(chat_identity: str) -> str:
    """WhatsApp identities are the sender's number, optionally with a @suffix."""
    return chat_identity.split("@")[0]


class SessionStore(LoggerMixin):
    """Owns every ConversationState for the lifetime of the process.

    ``get_or_create`` is an atomic insert-if-absent, so concurrent first
    contacts for one identity share a single state. ``turn_lock`` hands out
    one asyncio.Lock per identity for whoever dispatches turns.
    """

    def __init__(self):
        self._states: dict[str, ConversationState] = {}
        self._turn_locks: dict[str, asyncio.Lock] = {}
        self._guard = threading.Lock()

    def get(self, chat_identity: str) -> Optional[ConversationState]:
        with self._guard:
            return self._states.get(chat_identity)

    def get_or_create(self, chat_identity: str) -> tuple[ConversationState, bool]:
        """Return the state for ``chat_identity`` and whether it was just created"""
        with self._guard:
            state = self._states.get(chat_identity)
            if state is not None:
                return state, False
            state = ConversationState(
                chat_identity=chat_identity,
                profile=Profile(phone_number=phone_from_chat_id(chat_identity)),
            )
            self._states[chat_identity] = state

        self.logger.info("Created conversation state", chat_id=mask_chat_id(chat_identity))
        return state, True

    def reset(self, chat_identity: str) -> Optional[ConversationState]:
        state = self.get(chat_identity)
        if state is not None:
            state.reset()
        return state

    def turn_lock(self, chat_identity: str) -> asyncio.Lock:
        with self._guard:
            lock = self._turn_locks.get(chat_identity)
            if lock is None:
                lock = self._turn_locks[chat_identity] = asyncio.Lock()
            return lock

    def __contains__(self, chat_identity: str) -> bool:
        with self._guard:
            return chat_identity in self._states

    def __len__(self) -> int:
        with self._guard:
            return len(self._states)
