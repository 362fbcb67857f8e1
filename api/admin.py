"""
Admin routes.

Endpoints:
- POST /admin/login - Check the shared admin password
- GET /admin/unmatched - Users with an intro waiting for a partner
- GET /admin/matches - Active pairs, most recent conversation first
- GET /admin/conversation/{email_a}/{email_b} - Full, unredacted thread
- POST /admin/match - Pair two users
- GET /admin/deliveries - Armed delivery notification jobs

Every route except login requires the X-Admin-Password header.
"""

import logging
import secrets

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, EmailStr

from api.base import success_response
from auth.exceptions import NotAuthenticatedError
from core.services.conversation_service import ConversationLedger
from core.services.delivery_scheduler import DeliveryScheduler
from core.services.match_service import MatchRegistry

logger = logging.getLogger(__name__)


class AdminLoginRequest(BaseModel):
    password: str


class MatchRequest(BaseModel):
    email_a: EmailStr
    email_b: EmailStr


def create_admin_router(
    admin_password: str,
    match_registry: MatchRegistry,
    ledger: ConversationLedger,
    delivery_scheduler: DeliveryScheduler,
) -> APIRouter:
    """Create admin router; admin_password comes from Vault."""

    def _check(password: str | None) -> bool:
        if not password or not admin_password:
            return False
        return secrets.compare_digest(password.encode(), admin_password.encode())

    def require_admin(x_admin_password: str | None = Header(None)) -> None:
        if not _check(x_admin_password):
            raise NotAuthenticatedError("Admin password required")

    public = APIRouter(prefix="/admin", tags=["admin"])
    router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])

    @public.post("/login")
    def login(body: AdminLoginRequest):
        if not _check(body.password):
            logger.warning("Failed admin login attempt")
            raise NotAuthenticatedError("Invalid admin password")
        return success_response({"ok": True})

    @router.get("/unmatched")
    def unmatched_users():
        users = match_registry.unmatched_with_intro()
        return success_response({"users": [u.model_dump(mode="json") for u in users]})

    @router.get("/matches")
    def active_matches():
        matches = match_registry.active_matches()
        return success_response({"matches": [m.model_dump(mode="json") for m in matches]})

    @router.get("/conversation/{email_a}/{email_b}")
    def conversation(email_a: str, email_b: str):
        messages = ledger.conversation_between(email_a, email_b)
        return success_response({"messages": [m.model_dump(mode="json") for m in messages]})

    @router.post("/match")
    def create_match(body: MatchRequest):
        user_a, user_b = match_registry.match(body.email_a, body.email_b)
        return success_response({
            "ok": True,
            "users": [user_a.model_dump(mode="json"), user_b.model_dump(mode="json")],
        })

    @router.get("/deliveries")
    def pending_deliveries():
        return success_response({"deliveries": delivery_scheduler.pending_deliveries()})

    combined = APIRouter()
    combined.include_router(public)
    combined.include_router(router)
    return combined
