from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol

from pydantic import TypeAdapter
from sqlalchemy.orm import sessionmaker

from WillChat.crud.kv import delete_value, get_value, set_value
from WillChat.database import SessionLocal
from WillChat.schemas.chat import Conversation

logger = logging.getLogger(__name__)

STORAGE_KEY = "will-ai-conversations"
ACTIVE_CONVERSATION_KEY = "will-ai-active-conversation"

_conversation_list = TypeAdapter(List[Conversation])


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


# Key-value store over the kv_store table; every call uses its own short-lived session
class SqlKeyValueStore:
    def __init__(self, session_factory: Optional[sessionmaker] = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def get_item(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            return get_value(session, key)

    def set_item(self, key: str, value: str) -> None:
        with self._session_factory() as session:
            try:
                set_value(session, key, value)
                session.commit()
            except Exception:
                session.rollback()
                raise

    def remove_item(self, key: str) -> None:
        with self._session_factory() as session:
            try:
                delete_value(session, key)
                session.commit()
            except Exception:
                session.rollback()
                raise


class ConversationStorage:
    """Persists conversations and the active conversation id to a key-value store.

    Failures never propagate: they are logged and reads degrade to an empty
    result, writes to a no-op.
    """

    def __init__(self, kv: KeyValueStore) -> None:
        self.kv = kv

    def save_conversations(self, conversations: List[Conversation]) -> None:
        try:
            if not conversations:
                self.kv.remove_item(STORAGE_KEY)
                logger.info("storage.conversations.cleared")
                return
            # Unset statuses are omitted from the record rather than written as null
            payload = _conversation_list.dump_json(conversations, by_alias=True, exclude_none=True).decode("utf-8")
            self.kv.set_item(STORAGE_KEY, payload)
            logger.debug("storage.conversations.saved: count=%d", len(conversations))
        except Exception:
            logger.exception("storage.conversations.save.error")

    def load_conversations(self) -> List[Conversation]:
        try:
            stored = self.kv.get_item(STORAGE_KEY)
            if not stored:
                logger.info("storage.conversations.empty")
                return []
            conversations = _conversation_list.validate_json(stored)
            logger.info("storage.conversations.loaded: count=%d", len(conversations))
            return conversations
        except Exception:
            logger.exception("storage.conversations.load.error")
            return []

    def save_active_conversation_id(self, conversation_id: Optional[str]) -> None:
        try:
            if conversation_id:
                self.kv.set_item(ACTIVE_CONVERSATION_KEY, conversation_id)
            else:
                self.kv.remove_item(ACTIVE_CONVERSATION_KEY)
        except Exception:
            logger.exception("storage.active.save.error")

    def load_active_conversation_id(self) -> Optional[str]:
        try:
            return self.kv.get_item(ACTIVE_CONVERSATION_KEY) or None
        except Exception:
            logger.exception("storage.active.load.error")
            return None
