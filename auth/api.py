"""HTTP routes for email verification."""

from fastapi import APIRouter

from auth.service import VerificationService
from auth.types import CodeConfirmation, CodeRequest
from api.base import success_response


def create_auth_router(verification_service: VerificationService) -> APIRouter:
    """Create verification router with injected service.

    Failures are raised as domain exceptions and rendered by the global
    handlers in api/errors.py.
    """
    router = APIRouter(tags=["verification"])

    @router.post("/verify/request")
    def request_code(body: CodeRequest):
        """Email a fresh 6-digit code, replacing any pending one."""
        verification_service.request_code(body.email)
        return success_response({"ok": True})

    @router.post("/verify/confirm")
    def confirm_code(body: CodeConfirmation):
        """Check the code; creates the user on first verification."""
        user = verification_service.verify_code(body.email, body.code)
        return success_response({
            "ok": True,
            "user": user.model_dump(mode="json"),
        })

    return router
