"""User profile and introduction routes."""

from fastapi import APIRouter
from pydantic import BaseModel, EmailStr

from api.base import success_response
from core.services.user_service import UserService


class IntroRequest(BaseModel):
    email: EmailStr
    intro: str


def create_users_router(user_service: UserService) -> APIRouter:
    router = APIRouter(tags=["users"])

    @router.get("/users/{email}")
    def get_user(email: str):
        user = user_service.get_user(email)
        return success_response({"user": user.model_dump(mode="json")})

    @router.post("/intro")
    def submit_intro(body: IntroRequest):
        user = user_service.submit_intro(body.email, body.intro)
        return success_response({"ok": True, "user": user.model_dump(mode="json")})

    return router
