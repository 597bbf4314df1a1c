from __future__ import annotations

from fastapi import APIRouter

from app.studio.adapter import create_chat_reply
from app.studio.schemas import ChatMessageRequest

router = APIRouter(prefix="/v1", tags=["chat"])


@router.post("/chat/messages")
async def chat_messages(payload: ChatMessageRequest) -> dict:
    return await create_chat_reply(payload)
