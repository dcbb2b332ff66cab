"""
ProjectRepo Backend - Administration Schemas
=============================================

User accounts and classlist entries as seen and edited by administrators.
Password hashes are never part of a response model.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from projectrepo.models.enums import UserRole

# Shape check only (local@domain.tld)
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _normalize_email(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip().lower()
    return v or None


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════


class UserResponse(BaseModel):
    id: uuid.UUID
    name: str
    matricule: str
    email: Optional[str] = None
    role: UserRole
    created_at: datetime

    model_config = {"from_attributes": True}


class UserCreateRequest(BaseModel):
    name: str = Field(min_length=2, max_length=255)
    matricule: str = Field(min_length=2, max_length=64)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    role: UserRole
    password: str = Field(min_length=6, max_length=128)

    @field_validator("name", "matricule", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class UserUpdateRequest(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    role: Optional[UserRole] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v)


class PasswordResetRequest(BaseModel):
    password: str = Field(min_length=6, max_length=128)


# ══════════════════════════════════════════════════════════════════════════
# Classlist
# ══════════════════════════════════════════════════════════════════════════


class ClasslistEntryResponse(BaseModel):
    id: uuid.UUID
    matricule: str
    student_name: str
    student_email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ClasslistEntryRequest(BaseModel):
    matricule: str = Field(min_length=2, max_length=64)
    student_name: str = Field(min_length=2, max_length=255)
    student_email: str = Field(max_length=255, pattern=EMAIL_PATTERN)

    @field_validator("matricule", "student_name", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("student_email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return _normalize_email(v) or ""
