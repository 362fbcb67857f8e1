"""Conversation routes: read the thread, send a letter, end the pairing."""

from fastapi import APIRouter
from pydantic import BaseModel, EmailStr

from api.base import success_response
from core.services.conversation_service import ConversationLedger
from core.services.match_service import MatchRegistry


class SendMessageRequest(BaseModel):
    email: EmailStr
    content: str


def create_conversations_router(
    ledger: ConversationLedger,
    match_registry: MatchRegistry,
) -> APIRouter:
    router = APIRouter(tags=["conversations"])

    @router.get("/conversation/{email}")
    def get_conversation(email: str):
        """
        The user's thread with their partner.

        Undelivered inbound letters come back with content=null; an
        unmatched user gets an empty list.
        """
        views = ledger.view(email)
        return success_response({"messages": [v.model_dump(mode="json") for v in views]})

    @router.post("/messages")
    def send_message(body: SendMessageRequest):
        message = ledger.send(body.email, body.content)
        return success_response({"ok": True, "message": message.model_dump(mode="json")})

    @router.post("/conversation/{email}/end")
    def end_conversation(email: str):
        match_registry.end_conversation(email)
        return success_response({"ok": True})

    return router
