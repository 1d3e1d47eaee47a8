"""Authentication routes."""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from metricboard.api.dependencies import IdentityDependency
from metricboard.db.database import Database
from metricboard.domain import Identity, UserRole, ensure_utc
from metricboard.models import AuthToken, User
from metricboard.schemas import AuthResponse, LoginRequest, RegisterRequest, UserOut
from metricboard.security import hash_password, verify_password


def get_auth_router(database: Database, current_identity: IdentityDependency, token_lifetime: timedelta) -> APIRouter:
    router = APIRouter(prefix="/auth", tags=["auth"])

    @router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
    async def register(payload: RegisterRequest, session: AsyncSession = Depends(database.get_session)) -> AuthResponse:
        normalized_email = payload.email.strip().lower()
        existing = await session.execute(select(User).where(User.email == normalized_email))
        if existing.scalar_one_or_none() is not None:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email is already registered")

        user = User(
            name=payload.name.strip() if payload.name else None,
            email=normalized_email,
            password_hash=hash_password(payload.password),
            role=UserRole.VIEWER.value,
        )
        session.add(user)
        await session.flush()

        token = AuthToken.for_user(user.uuid, token_lifetime)
        session.add(token)
        await session.commit()
        await session.refresh(user)

        return AuthResponse(access_token=token.token, user=to_user_out(user))

    @router.post("/login", response_model=AuthResponse)
    async def login(payload: LoginRequest, session: AsyncSession = Depends(database.get_session)) -> AuthResponse:
        normalized_email = payload.email.strip().lower()
        query = await session.execute(select(User).where(User.email == normalized_email))
        user = query.scalar_one_or_none()
        if user is None or not verify_password(payload.password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

        token = AuthToken.for_user(user.uuid, token_lifetime)
        session.add(token)
        await session.commit()
        await session.refresh(user)

        return AuthResponse(access_token=token.token, user=to_user_out(user))

    @router.get("/me", response_model=UserOut)
    async def me(
        identity: Identity = Depends(current_identity),
        session: AsyncSession = Depends(database.get_session),
    ) -> UserOut:
        user = await session.get(User, identity.user_uuid)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
        return to_user_out(user)

    return router


def to_user_out(user: User) -> UserOut:
    return UserOut(
        uuid=user.uuid,
        name=user.name,
        email=user.email,
        role=UserRole(user.role),
        created_at=ensure_utc(user.created_at),
    )


__all__ = ["get_auth_router", "to_user_out"]
