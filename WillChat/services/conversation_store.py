from __future__ import annotations

import asyncio
import logging
import pathlib
import time
from datetime import datetime
from typing import Any, Callable, Coroutine, Dict, List, Optional, Set

from WillChat.schemas.chat import Conversation, Message, MessageStatus, Sender, utc_now
from WillChat.services.completion_client import ChatCompletionMessage, CompletionClient
from WillChat.services.storage import ConversationStorage
from WillChat.services.title_generator import TitleGenerator

logger = logging.getLogger(__name__)
_PACKAGE_DIR = pathlib.Path(__file__).resolve().parents[1]

NEW_CHAT_TITLE = "New chat"
CONTEXT_WINDOW_SIZE = 10
SEND_ERROR_TEXT = "Sorry, I encountered an error while processing your message. Please try again."
REGENERATE_ERROR_TEXT = "Sorry, I encountered an error while regenerating the message. Please try again."


def load_system_prompt() -> str:
    return (_PACKAGE_DIR / "resources" / "chat_prompt.txt").read_text(encoding="utf-8").strip()


class TokenGenerator:
    """Millisecond-epoch ids, strictly increasing within the process."""

    def __init__(self, clock: Callable[[], int] = time.time_ns) -> None:
        self._clock = clock
        self._last = 0

    def next(self) -> str:
        token = max(self._clock() // 1_000_000, self._last + 1)
        self._last = token
        return str(token)


class ConversationStore:
    """In-memory conversation state with write-through persistence.

    Owns the conversation mapping (newest-created first), the active
    conversation pointer and the loading flag. Every mutation re-serializes
    the full state through ``ConversationStorage``.

    ``send_message`` and ``regenerate_message`` await the completion client;
    their results are applied to whatever state exists when the reply
    arrives. Writes aimed at a conversation that has since been deleted are
    dropped. Title generation runs as a separate task with no ordering
    against the reply.
    """

    def __init__(
        self,
        storage: ConversationStorage,
        client: CompletionClient,
        title_generator: TitleGenerator,
        *,
        system_prompt: Optional[str] = None,
        id_generator: Optional[TokenGenerator] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.storage = storage
        self.client = client
        self.title_generator = title_generator
        self.system_prompt = system_prompt if system_prompt is not None else load_system_prompt()
        self._ids = id_generator or TokenGenerator()
        self._now = clock

        self._conversations: Dict[str, Conversation] = {}
        self.active_conversation_id: Optional[str] = None
        self.is_loading = False
        self.is_initialized = False
        self._background_tasks: Set[asyncio.Task] = set()

    @property
    def conversations(self) -> List[Conversation]:
        return list(self._conversations.values())

    @property
    def active_conversation(self) -> Optional[Conversation]:
        if self.active_conversation_id is None:
            return None
        return self._conversations.get(self.active_conversation_id)

    def get_conversation(self, conversation_id: str) -> Optional[Conversation]:
        return self._conversations.get(conversation_id)

    # Load persisted state and pick the conversation to show first
    def initialize(self) -> None:
        if self.is_initialized:
            return
        logger.info("chat.store.init")

        loaded = self.storage.load_conversations()
        loaded_active_id = self.storage.load_active_conversation_id()
        self._conversations = {conv.id: conv for conv in loaded}

        if loaded_active_id and loaded_active_id in self._conversations:
            logger.info("chat.store.init.restore_active: id=%s", loaded_active_id)
            self.active_conversation_id = loaded_active_id
        elif self._conversations:
            most_recent = self._most_recently_updated()
            logger.info("chat.store.init.most_recent: id=%s", most_recent.id)
            self.active_conversation_id = most_recent.id
        else:
            conv = self._new_conversation()
            logger.info("chat.store.init.new: id=%s", conv.id)
            self._conversations = {conv.id: conv}
            self.active_conversation_id = conv.id

        self.is_initialized = True
        self._persist()

    def create_new_conversation(self) -> Conversation:
        # Blank conversations are replaced rather than piling up in the sidebar
        kept = {cid: conv for cid, conv in self._conversations.items() if conv.messages}
        dropped = len(self._conversations) - len(kept)
        conv = self._new_conversation()
        self._conversations = {conv.id: conv, **kept}
        self.active_conversation_id = conv.id
        logger.info("chat.conversation.create: id=%s dropped_empty=%d", conv.id, dropped)
        self._persist()
        return conv

    # Does not check that the id exists; an unknown id leaves no active conversation to render
    def select_conversation(self, conversation_id: str) -> None:
        if conversation_id not in self._conversations:
            logger.warning("chat.conversation.select.unknown: id=%s", conversation_id)
        else:
            logger.info("chat.conversation.select: id=%s", conversation_id)
        self.active_conversation_id = conversation_id
        self._persist()

    def edit_conversation_title(self, conversation_id: str, new_title: str) -> None:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            return
        conv.title = new_title
        conv.updated_at = self._now()
        logger.info("chat.conversation.rename: id=%s", conversation_id)
        self._persist()

    def delete_conversation(self, conversation_id: str) -> None:
        self._conversations.pop(conversation_id, None)
        logger.info("chat.conversation.delete: id=%s", conversation_id)

        if self.active_conversation_id == conversation_id:
            if self._conversations:
                self.active_conversation_id = self._most_recently_updated().id
            else:
                conv = self._new_conversation()
                self._conversations = {conv.id: conv}
                self.active_conversation_id = conv.id
        self._persist()

    # Append the user's message, ask for a reply and append it (or an error bubble); never raises
    async def send_message(self, content: str) -> Optional[Message]:
        conversation_id = self.active_conversation_id
        conv = self.active_conversation
        if conversation_id is None or conv is None:
            logger.error("chat.send.no_active_conversation: id=%s", conversation_id)
            return None

        is_first_message = len(conv.messages) == 0
        user_message = self._new_message(content, "user", "sent")
        conv.messages.append(user_message)
        conv.updated_at = self._now()
        self._persist()
        logger.info("chat.send: conv=%s first=%s", conversation_id, is_first_message)

        if is_first_message:
            self._spawn(self._update_conversation_title(conversation_id, content))

        transcript = self._build_transcript(conv.messages[-CONTEXT_WINDOW_SIZE:])
        self.is_loading = True
        try:
            try:
                reply = await self.client.complete(transcript)
            except Exception:
                logger.exception("chat.send.error: conv=%s", conversation_id)
                reply_message = self._new_message(SEND_ERROR_TEXT, "ai", "error")
            else:
                reply_message = self._new_message(reply, "ai", "sent")
            self._append_message(conversation_id, reply_message)
            return reply_message
        finally:
            self.is_loading = False

    # Replace the target message and everything after it with a freshly generated reply
    async def regenerate_message(self, message_id: str) -> Optional[Message]:
        conversation_id = self.active_conversation_id
        conv = self.active_conversation
        if conversation_id is None or conv is None:
            return None

        index = next((i for i, m in enumerate(conv.messages) if m.id == message_id), None)
        if index is None:
            logger.warning("chat.regenerate.unknown_message: conv=%s message=%s", conversation_id, message_id)
            return None

        prefix = list(conv.messages[:index])
        transcript = self._build_transcript(prefix)
        logger.info("chat.regenerate: conv=%s index=%d", conversation_id, index)
        self.is_loading = True
        try:
            try:
                reply = await self.client.complete(transcript)
            except Exception:
                logger.exception("chat.regenerate.error: conv=%s", conversation_id)
                reply_message = self._new_message(REGENERATE_ERROR_TEXT, "ai", "error")
            else:
                reply_message = self._new_message(reply, "ai", "sent")
            self._replace_messages(conversation_id, prefix + [reply_message])
            return reply_message
        finally:
            self.is_loading = False

    async def wait_for_background_tasks(self) -> None:
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def _update_conversation_title(self, conversation_id: str, first_user_message: str) -> None:
        try:
            title = await self.title_generator.generate(first_user_message)
        except Exception:
            logger.exception("chat.title.update.error: conv=%s", conversation_id)
            return
        conv = self._conversations.get(conversation_id)
        if conv is None:
            logger.info("chat.title.update.dropped: conv=%s", conversation_id)
            return
        conv.title = title
        conv.updated_at = self._now()
        self._persist()

    def _append_message(self, conversation_id: str, message: Message) -> None:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            logger.info("chat.reply.dropped: conv=%s", conversation_id)
            return
        conv.messages.append(message)
        conv.updated_at = self._now()
        self._persist()

    def _replace_messages(self, conversation_id: str, messages: List[Message]) -> None:
        conv = self._conversations.get(conversation_id)
        if conv is None:
            logger.info("chat.regenerate.dropped: conv=%s", conversation_id)
            return
        conv.messages = messages
        conv.updated_at = self._now()
        self._persist()

    def _build_transcript(self, messages: List[Message]) -> List[ChatCompletionMessage]:
        transcript: List[ChatCompletionMessage] = [{"role": "system", "content": self.system_prompt}]
        for msg in messages:
            role = "user" if msg.sender == "user" else "assistant"
            transcript.append({"role": role, "content": msg.content})
        return transcript

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    def _new_conversation(self) -> Conversation:
        now = self._now()
        return Conversation(id=self._ids.next(), title=NEW_CHAT_TITLE, messages=[], created_at=now, updated_at=now)

    def _new_message(self, content: str, sender: Sender, status: MessageStatus) -> Message:
        return Message(id=self._ids.next(), content=content, sender=sender, timestamp=self._now(), status=status)

    def _most_recently_updated(self) -> Conversation:
        return max(self._conversations.values(), key=lambda conv: conv.updated_at)

    def _persist(self) -> None:
        if not self.is_initialized:
            return
        self.storage.save_conversations(self.conversations)
        self.storage.save_active_conversation_id(self.active_conversation_id)
