from datetime import datetime, timezone
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer

Sender = Literal["user", "ai"]
MessageStatus = Literal["sending", "sent", "error"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ISO-8601 in UTC with millisecond precision, e.g. 2025-01-31T09:15:02.123Z
def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# Single chat bubble; the assistant side is stored as "ai"
class Message(BaseModel):
    id: str
    content: str
    sender: Sender
    timestamp: datetime = Field(default_factory=utc_now)
    status: Optional[MessageStatus] = None

    @field_serializer("timestamp", when_used="json")
    def _serialize_timestamp(self, value: datetime) -> str:
        return to_iso(value)


# Conversation record as kept in memory and persisted (camelCase timestamps on the wire)
class Conversation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    title: str
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")

    @field_serializer("created_at", "updated_at", when_used="json")
    def _serialize_timestamps(self, value: datetime) -> str:
        return to_iso(value)


# Request body for posting a user message to the active conversation
class SendMessageRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    content: str


# Request body for renaming a conversation
class EditTitleRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    title: str


# Everything a client needs to render the sidebar and the thread
class ChatStateOut(BaseModel):
    conversations: List[Conversation]
    active_conversation_id: Optional[str] = None
    active_conversation: Optional[Conversation] = None
    is_loading: bool = False


# PRO mode flag as exposed by the preferences endpoints
class ProModeOut(BaseModel):
    is_pro_mode: bool
