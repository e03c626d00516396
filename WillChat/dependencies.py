from typing import Optional

from WillChat.services.completion_client import CompletionClient
from WillChat.services.conversation_store import ConversationStore
from WillChat.services.preferences import PreferencesStore
from WillChat.services.storage import ConversationStorage, SqlKeyValueStore
from WillChat.services.title_generator import TitleGenerator

_store_singleton: Optional[ConversationStore] = None
_preferences_singleton: Optional[PreferencesStore] = None


def get_conversation_store() -> ConversationStore:
    global _store_singleton
    if _store_singleton is not None:
        return _store_singleton

    client = CompletionClient()
    _store_singleton = ConversationStore(
        storage=ConversationStorage(SqlKeyValueStore()),
        client=client,
        title_generator=TitleGenerator(client),
    )
    return _store_singleton


def get_preferences_store() -> PreferencesStore:
    global _preferences_singleton
    if _preferences_singleton is None:
        _preferences_singleton = PreferencesStore(SqlKeyValueStore())
    return _preferences_singleton


# The store if one was built, without building it as a side effect
def peek_conversation_store() -> Optional[ConversationStore]:
    return _store_singleton
