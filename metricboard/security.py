"""Security helpers for hashing passwords and issuing tokens."""

from __future__ import annotations

from datetime import timedelta

from passlib.context import CryptContext

from metricboard.config import AppSettings

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    return _pwd_context.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return _pwd_context.verify(plain_password, password_hash)


def token_lifetime(settings: AppSettings) -> timedelta:
    return timedelta(days=settings.token_lifetime_days)
