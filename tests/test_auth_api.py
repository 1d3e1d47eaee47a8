from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path

from httpx import ASGITransport, AsyncClient
from sqlalchemy import select, update

from metricboard.config import AppSettings
from metricboard.db.database import Database
from metricboard.domain import ensure_utc
from metricboard.main import create_app
from metricboard.models import AuthToken, User


def _database(tmp_path: Path) -> Database:
    db_path = tmp_path / "test_auth.db"
    return Database(url=f"sqlite+aiosqlite:///{db_path}")


def _client(database: Database, settings: AppSettings | None = None):
    app = create_app(database, settings=settings)

    @asynccontextmanager
    async def _manager():
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client

    return _manager


async def _promote(database: Database, email: str) -> None:
    async with database.session() as session:
        await session.execute(update(User).where(User.email == email).values(role="admin"))
        await session.commit()


def test_register_and_login_flow(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            register_response = await api_client.post(
                "/auth/register",
                json={"name": "Alex", "email": "Alex@Example.com", "password": "supersecret"},
            )
            assert register_response.status_code == 201
            register_payload = register_response.json()
            assert register_payload["user"]["email"] == "alex@example.com"
            assert register_payload["user"]["role"] == "viewer"
            assert register_payload["access_token"]

            login_response = await api_client.post(
                "/auth/login",
                json={"email": "alex@example.com", "password": "supersecret"},
            )
            assert login_response.status_code == 200
            login_payload = login_response.json()
            assert login_payload["user"]["uuid"] == register_payload["user"]["uuid"]
            assert login_payload["access_token"] != register_payload["access_token"]

            me = await api_client.get(
                "/auth/me", headers={"Authorization": f"Bearer {login_payload['access_token']}"}
            )
            assert me.status_code == 200
            assert me.json()["email"] == "alex@example.com"
        await database.dispose()

    asyncio.run(_scenario())


def test_duplicate_registration_fails(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            first = await api_client.post(
                "/auth/register",
                json={"name": "Jamie", "email": "jamie@example.com", "password": "supersecret"},
            )
            assert first.status_code == 201

            second = await api_client.post(
                "/auth/register",
                json={"name": "Jamie Clone", "email": "jamie@example.com", "password": "anotherpass"},
            )
            assert second.status_code == 409
        await database.dispose()

    asyncio.run(_scenario())


def test_login_requires_valid_credentials(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            await api_client.post(
                "/auth/register",
                json={"name": "Morgan", "email": "morgan@example.com", "password": "supersecret"},
            )

            response = await api_client.post(
                "/auth/login",
                json={"email": "morgan@example.com", "password": "wrongpass"},
            )
            assert response.status_code == 401
        await database.dispose()

    asyncio.run(_scenario())


def test_protected_routes_require_token(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            assert (await api_client.get("/metrics")).status_code == 401
            bogus = await api_client.get("/dashboards", headers={"Authorization": "Bearer not-a-token"})
            assert bogus.status_code == 401

            health = await api_client.get("/health")
            assert health.status_code == 200
            assert health.json()["status"] == "ok"
        await database.dispose()

    asyncio.run(_scenario())


def test_user_admin_requires_admin_role(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            registered = await api_client.post(
                "/auth/register",
                json={"name": "Riley", "email": "riley@example.com", "password": "supersecret"},
            )
            headers = {"Authorization": f"Bearer {registered.json()['access_token']}"}

            forbidden = await api_client.get("/users", headers=headers)
            assert forbidden.status_code == 403

            await _promote(database, "riley@example.com")

            created = await api_client.post(
                "/users",
                headers=headers,
                json={"name": "Sam", "email": "sam@example.com", "password": "supersecret", "role": "admin"},
            )
            assert created.status_code == 201
            sam = created.json()
            assert sam["role"] == "admin"

            demoted = await api_client.patch(f"/users/{sam['uuid']}", headers=headers, json={"role": "viewer"})
            assert demoted.status_code == 200
            assert demoted.json()["role"] == "viewer"

            listed = await api_client.get("/users", headers=headers)
            assert sorted(user["email"] for user in listed.json()) == ["riley@example.com", "sam@example.com"]

            deleted = await api_client.delete(f"/users/{sam['uuid']}", headers=headers)
            assert deleted.status_code == 204
            missing = await api_client.patch(f"/users/{sam['uuid']}", headers=headers, json={"role": "viewer"})
            assert missing.status_code == 404
        await database.dispose()

    asyncio.run(_scenario())


def test_token_lifetime_follows_app_settings(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database, AppSettings(token_lifetime_days=1))

    async def _scenario():
        async with client_manager() as api_client:
            await api_client.post(
                "/auth/register",
                json={"name": "Jo", "email": "jo@example.com", "password": "supersecret"},
            )
            await api_client.post("/auth/login", json={"email": "jo@example.com", "password": "supersecret"})

        async with database.session() as session:
            tokens = (await session.execute(select(AuthToken))).scalars().all()
        assert len(tokens) == 2
        for token in tokens:
            assert ensure_utc(token.expires_at) - ensure_utc(token.created_at) == timedelta(days=1)
        await database.dispose()

    asyncio.run(_scenario())
