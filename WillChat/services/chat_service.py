from __future__ import annotations

from fastapi import HTTPException

from WillChat.schemas.chat import ChatStateOut, EditTitleRequest, SendMessageRequest
from WillChat.services.conversation_store import ConversationStore


class ChatService:
    # Wraps the process-wide conversation store; initializes it on first use.
    def __init__(self, store: ConversationStore):
        self.store = store
        self.store.initialize()

    def state(self) -> ChatStateOut:
        return ChatStateOut(
            conversations=self.store.conversations,
            active_conversation_id=self.store.active_conversation_id,
            active_conversation=self.store.active_conversation,
            is_loading=self.store.is_loading,
        )

    def create_conversation(self) -> ChatStateOut:
        self.store.create_new_conversation()
        return self.state()

    def select_conversation(self, *, conversation_id: str) -> ChatStateOut:
        self.store.select_conversation(conversation_id)
        return self.state()

    def rename_conversation(self, *, conversation_id: str, payload: EditTitleRequest) -> ChatStateOut:
        self.store.edit_conversation_title(conversation_id, payload.title)
        return self.state()

    def delete_conversation(self, *, conversation_id: str) -> ChatStateOut:
        self.store.delete_conversation(conversation_id)
        return self.state()

    # Validates input, then waits for the reply (or error bubble) before returning the new state.
    async def send_message(self, *, payload: SendMessageRequest) -> ChatStateOut:
        content = payload.content
        if not isinstance(content, str) or not content.strip():
            raise HTTPException(status_code=400, detail="Missing content")
        if self.store.is_loading:
            raise HTTPException(status_code=409, detail="A reply is already being generated")
        await self.store.send_message(content.strip())
        return self.state()

    async def regenerate_message(self, *, message_id: str) -> ChatStateOut:
        if self.store.is_loading:
            raise HTTPException(status_code=409, detail="A reply is already being generated")
        await self.store.regenerate_message(message_id)
        return self.state()
