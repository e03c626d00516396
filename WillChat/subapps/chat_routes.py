from fastapi import APIRouter, Depends

from WillChat.dependencies import get_conversation_store
from WillChat.schemas.chat import ChatStateOut, EditTitleRequest, SendMessageRequest
from WillChat.services.chat_service import ChatService
from WillChat.services.conversation_store import ConversationStore


router = APIRouter(prefix="/chat", tags=["chat"])


# Handlers and this dependency are async so the store is only touched from the event loop thread
async def _get_chat_service(store: ConversationStore = Depends(get_conversation_store)) -> ChatService:
    return ChatService(store)


# Current sidebar + thread state
@router.get("/state")
async def get_state(svc: ChatService = Depends(_get_chat_service)) -> ChatStateOut:
    return svc.state()


# Starts a new conversation (replacing any blank one) and makes it active
@router.post("/conversations")
async def create_conversation(svc: ChatService = Depends(_get_chat_service)) -> ChatStateOut:
    return svc.create_conversation()


@router.post("/conversations/{conversation_id}/select")
async def select_conversation(conversation_id: str, svc: ChatService = Depends(_get_chat_service)) -> ChatStateOut:
    return svc.select_conversation(conversation_id=conversation_id)


@router.patch("/conversations/{conversation_id}")
async def rename_conversation(
    conversation_id: str,
    payload: EditTitleRequest,
    svc: ChatService = Depends(_get_chat_service),
) -> ChatStateOut:
    return svc.rename_conversation(conversation_id=conversation_id, payload=payload)


@router.delete("/conversations/{conversation_id}")
async def delete_conversation(conversation_id: str, svc: ChatService = Depends(_get_chat_service)) -> ChatStateOut:
    return svc.delete_conversation(conversation_id=conversation_id)


# Sends a message to the active conversation and returns once the reply (or error bubble) is in
@router.post("/messages")
async def send_message(payload: SendMessageRequest, svc: ChatService = Depends(_get_chat_service)) -> ChatStateOut:
    return await svc.send_message(payload=payload)


# Regenerates a reply, discarding it and every later message
@router.post("/messages/{message_id}/regenerate")
async def regenerate_message(message_id: str, svc: ChatService = Depends(_get_chat_service)) -> ChatStateOut:
    return await svc.regenerate_message(message_id=message_id)
