"""Request payloads for the verification flow."""

from pydantic import BaseModel, EmailStr, Field


class CodeRequest(BaseModel):
    """Request payload for a verification code."""

    email: EmailStr


class CodeConfirmation(BaseModel):
    """Request payload to confirm a verification code."""

    email: EmailStr
    code: str = Field(..., min_length=1, max_length=16)
