"""
Verification Schemas

Pydantic schemas for the email OTP endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class SendCodeRequest(BaseModel):
    """Request body for POST /verification/send-code."""

    email: EmailStr


class SendCodeResponse(BaseModel):
    issued: bool = True
    email: str
    expires_at: datetime
    expires_in_seconds: int
    message: str = "Verification code sent. Please check your email."


class VerifyCodeRequest(BaseModel):
    """Request body for POST /verification/verify-code."""

    email: EmailStr
    code: str = Field(..., min_length=1, max_length=12)


class VerifyCodeResponse(BaseModel):
    verified: bool = True
    email: str
    verified_until: datetime
    message: str = "Email verified. You can now submit your application."


class CheckVerifiedRequest(BaseModel):
    """Request body for POST /verification/check."""

    email: EmailStr


class CheckVerifiedResponse(BaseModel):
    email: str
    verified: bool
