"""
ProjectRepo Backend - Authentication & Registration Schemas
============================================================

Request bodies are validated here; anything that fails becomes a 400 with
the first failing field (see the RequestValidationError handler in main.py).
"""

import uuid

from pydantic import BaseModel, Field, field_validator

from projectrepo.models.enums import UserRole


# ══════════════════════════════════════════════════════════════════════════
# Requests
# ══════════════════════════════════════════════════════════════════════════


class LoginRequest(BaseModel):
    matricule: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=1, max_length=128)

    @field_validator("matricule", mode="before")
    @classmethod
    def strip_matricule(cls, v):
        return v.strip() if isinstance(v, str) else v


class RegisterStartRequest(BaseModel):
    """
    First step of self-registration.

    The email the code is sent to is NOT part of the request; it comes from
    the classlist entry for the matricule.
    """
    name: str = Field(min_length=2, max_length=255, description="Full name")
    matricule: str = Field(min_length=2, max_length=64, description="Enrollment identifier")
    password: str = Field(min_length=6, max_length=128)

    @field_validator("name", "matricule", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v


class RegisterVerifyRequest(BaseModel):
    matricule: str = Field(min_length=2, max_length=64)
    # Length bounds follow OTP_LENGTH's allowed range; the default code is 6 digits
    otp: str = Field(min_length=4, max_length=10, description="The numeric code from the email")

    @field_validator("matricule", "otp", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v


# ══════════════════════════════════════════════════════════════════════════
# Responses
# ══════════════════════════════════════════════════════════════════════════


class SessionUser(BaseModel):
    """The identity carried by a session token."""
    id: uuid.UUID
    name: str
    role: UserRole
    matricule: str

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: SessionUser


class RegisterStartResponse(BaseModel):
    message: str = "A verification code has been sent to your registered email address."
    expires_in_minutes: int
