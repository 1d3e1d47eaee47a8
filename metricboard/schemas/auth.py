"""Pydantic schemas for authentication and user administration."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from metricboard.domain import UserRole


class UserOut(BaseModel):
    uuid: str
    name: Optional[str]
    email: EmailStr
    role: UserRole
    created_at: datetime


class AuthResponse(BaseModel):
    access_token: str = Field(..., description="Opaque token for session management")
    token_type: str = Field(default="bearer")
    user: UserOut


class RegisterRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)


class AdminCreateUserRequest(RegisterRequest):
    role: UserRole = Field(default=UserRole.VIEWER)


class AdminUpdateUserRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=255)
    role: Optional[UserRole] = None
    password: Optional[str] = Field(default=None, min_length=8, max_length=72)


class HealthResponse(BaseModel):
    status: str
    service: str
    timestamp: datetime
