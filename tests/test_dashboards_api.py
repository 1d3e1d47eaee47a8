import asyncio
from contextlib import asynccontextmanager
from pathlib import Path

from httpx import ASGITransport, AsyncClient
from sqlalchemy import update

from metricboard.db.database import Database
from metricboard.main import create_app
from metricboard.models import User


def _database(tmp_path: Path) -> Database:
    return Database(url=f"sqlite+aiosqlite:///{tmp_path / 'test_dashboards.db'}")


def _client(database: Database):
    app = create_app(database)

    @asynccontextmanager
    async def _manager():
        async with app.router.lifespan_context(app):
            transport = ASGITransport(app=app)
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                yield client

    return _manager


async def _register(client: AsyncClient, email: str) -> dict[str, str]:
    response = await client.post("/auth/register", json={"email": email, "password": "supersecret"})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


async def _create_metric(client: AsyncClient, headers: dict[str, str], name: str) -> str:
    response = await client.post(
        "/metrics",
        headers=headers,
        json={
            "name": name,
            "value_type": "integer",
            "unit": "count",
            "values": [
                {"value": 10, "timestamp": "2025-01-01T00:00:00Z"},
                {"value": 20, "timestamp": "2025-02-01T00:00:00Z"},
                {"value": 30, "timestamp": "2025-03-01T00:00:00Z"},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()["uuid"]


async def _create_kpi(client: AsyncClient, headers: dict[str, str], metric_uuid: str) -> str:
    response = await client.post(
        "/kpis",
        headers=headers,
        json={"name": "Signups goal", "metric_uuid": metric_uuid, "targets": [{"value": 25}]},
    )
    assert response.status_code == 201
    return response.json()["uuid"]


def _tile(tile_id: str, x: int, y: int, metric_uuids: list[str], **extra) -> dict:
    return {"id": tile_id, "x": x, "y": y, "w": 4, "h": 3, "type": "single-metric", "metric_uuids": metric_uuids, **extra}


def test_dashboard_lifecycle_and_ownership(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            owner = await _register(api_client, "owner@example.com")
            other = await _register(api_client, "other@example.com")
            metric_uuid = await _create_metric(api_client, owner, "Signups")

            created = await api_client.post(
                "/dashboards",
                headers=owner,
                json={
                    "name": "Growth",
                    "description": "Top of funnel",
                    "tiles": [_tile("a", 0, 0, [metric_uuid]), _tile("b", 4, 0, [metric_uuid], config={"color": "red"})],
                },
            )
            assert created.status_code == 201
            dashboard = created.json()
            dashboard_uuid = dashboard["uuid"]
            assert dashboard["tiles"][1]["config"] == {"color": "red"}

            listing = await api_client.get("/dashboards", headers=other)
            assert listing.status_code == 200
            assert listing.json()[0]["is_owner"] is False
            assert listing.json()[0]["tile_count"] == 2

            viewed = await api_client.get(f"/dashboards/{dashboard_uuid}", headers=other)
            assert viewed.status_code == 200

            forbidden_edit = await api_client.put(f"/dashboards/{dashboard_uuid}", headers=other, json={"name": "Mine"})
            assert forbidden_edit.status_code == 403
            assert forbidden_edit.json()["code"] == "forbidden"
            forbidden_delete = await api_client.delete(f"/dashboards/{dashboard_uuid}", headers=other)
            assert forbidden_delete.status_code == 403

            renamed = await api_client.put(f"/dashboards/{dashboard_uuid}", headers=owner, json={"name": "Growth v2"})
            assert renamed.status_code == 200
            assert renamed.json()["name"] == "Growth v2"
            assert len(renamed.json()["tiles"]) == 2

            duplicate = await api_client.post(f"/dashboards/{dashboard_uuid}/duplicate", headers=other)
            assert duplicate.status_code == 201
            duplicate_payload = duplicate.json()
            assert duplicate_payload["name"] == "Copy of Growth v2"
            assert duplicate_payload["uuid"] != dashboard_uuid
            assert duplicate_payload["tiles"] == renamed.json()["tiles"]

            own_copy_edit = await api_client.put(
                f"/dashboards/{duplicate_payload['uuid']}",
                headers=other,
                json={"tiles": [_tile("solo", 0, 0, [metric_uuid])]},
            )
            assert own_copy_edit.status_code == 200
            original = await api_client.get(f"/dashboards/{dashboard_uuid}", headers=owner)
            assert [tile["id"] for tile in original.json()["tiles"]] == ["a", "b"]

            deleted = await api_client.delete(f"/dashboards/{dashboard_uuid}", headers=owner)
            assert deleted.status_code == 204
            gone = await api_client.get(f"/dashboards/{dashboard_uuid}", headers=owner)
            assert gone.status_code == 404
            assert gone.json()["code"] == "not_found"
            missing_edit = await api_client.put(f"/dashboards/{dashboard_uuid}", headers=other, json={"name": "x"})
            assert missing_edit.status_code == 404
        await database.dispose()

    asyncio.run(_scenario())


def test_admin_can_modify_any_dashboard(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            owner = await _register(api_client, "owner@example.com")
            admin = await _register(api_client, "admin@example.com")
            async with database.session() as session:
                await session.execute(update(User).where(User.email == "admin@example.com").values(role="admin"))
                await session.commit()

            metric_uuid = await _create_metric(api_client, owner, "Signups")
            created = await api_client.post(
                "/dashboards", headers=owner, json={"name": "Growth", "tiles": [_tile("a", 0, 0, [metric_uuid])]}
            )
            dashboard_uuid = created.json()["uuid"]

            listing = await api_client.get("/dashboards", headers=admin)
            assert listing.json()[0]["is_owner"] is True

            edited = await api_client.put(f"/dashboards/{dashboard_uuid}", headers=admin, json={"description": "Audited"})
            assert edited.status_code == 200
            assert edited.json()["description"] == "Audited"
            assert edited.json()["owner_uuid"] == created.json()["owner_uuid"]

            deleted = await api_client.delete(f"/dashboards/{dashboard_uuid}", headers=admin)
            assert deleted.status_code == 204
        await database.dispose()

    asyncio.run(_scenario())


def test_layout_errors_map_to_bad_request(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            owner = await _register(api_client, "owner@example.com")
            metric_uuid = await _create_metric(api_client, owner, "Signups")

            overlap = await api_client.post(
                "/dashboards",
                headers=owner,
                json={"name": "Broken", "tiles": [_tile("a", 0, 0, [metric_uuid]), _tile("b", 2, 1, [metric_uuid])]},
            )
            assert overlap.status_code == 400
            assert overlap.json()["code"] == "tile_overlap"
            assert overlap.json()["details"] == {"tile_ids": ["a", "b"]}

            empty = await api_client.post("/dashboards", headers=owner, json={"name": "Empty", "tiles": []})
            assert empty.status_code == 400
            assert empty.json()["code"] == "empty_dashboard"

            no_metric = await api_client.post(
                "/dashboards", headers=owner, json={"name": "Bare", "tiles": [_tile("a", 0, 0, [])]}
            )
            assert no_metric.json()["code"] == "tile_missing_metric"

            negative = await api_client.post(
                "/dashboards",
                headers=owner,
                json={"name": "Offgrid", "tiles": [{**_tile("a", 0, 0, [metric_uuid]), "x": -1}]},
            )
            assert negative.status_code == 400
            assert negative.json()["code"] == "invalid_tile_geometry"

            duplicate_ids = await api_client.post(
                "/dashboards",
                headers=owner,
                json={"name": "Twins", "tiles": [_tile("a", 0, 0, [metric_uuid]), _tile("a", 8, 0, [metric_uuid])]},
            )
            assert duplicate_ids.json()["code"] == "duplicate_tile_id"

            assert (await api_client.get("/dashboards", headers=owner)).json() == []
        await database.dispose()

    asyncio.run(_scenario())


def test_dashboard_data_bundle(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            owner = await _register(api_client, "owner@example.com")
            signups = await _create_metric(api_client, owner, "Signups")
            visits = await _create_metric(api_client, owner, "Visits")
            kpi_uuid = await _create_kpi(api_client, owner, signups)

            created = await api_client.post(
                "/dashboards",
                headers=owner,
                json={
                    "name": "Growth",
                    "tiles": [
                        {**_tile("a", 0, 0, [signups, visits]), "type": "metric-with-kpi", "kpi_uuids": [kpi_uuid]},
                        {**_tile("b", 4, 0, [visits, "deleted-metric"]), "kpi_uuids": [kpi_uuid, "deleted-kpi"]},
                    ],
                },
            )
            dashboard_uuid = created.json()["uuid"]

            bundle = await api_client.get(f"/dashboards/{dashboard_uuid}/data", headers=owner)
            assert bundle.status_code == 200
            payload = bundle.json()
            assert payload["dashboard"]["name"] == "Growth"
            assert sorted(payload["data"]["metrics"]) == sorted([signups, visits])
            assert list(payload["data"]["kpis"]) == [kpi_uuid]
            assert payload["data"]["kpis"][kpi_uuid]["status"] == "on-track"
            assert len(payload["data"]["metrics"][signups]["values"]) == 3
            assert payload["filters"] == {"start_date": None, "end_date": None}

            filtered = await api_client.get(
                f"/dashboards/{dashboard_uuid}/data",
                headers=owner,
                params={"start_date": "2025-01-15T00:00:00Z", "end_date": "2025-03-01T00:00:00Z"},
            )
            values = [item["value"] for item in filtered.json()["data"]["metrics"][visits]["values"]]
            assert values == [20, 30]
            assert filtered.json()["filters"]["start_date"].startswith("2025-01-15T00:00:00")

            missing = await api_client.get("/dashboards/does-not-exist/data", headers=owner)
            assert missing.status_code == 404
        await database.dispose()

    asyncio.run(_scenario())


def test_dashboard_names_are_trimmed_on_create_and_update(tmp_path: Path):
    database = _database(tmp_path)
    client_manager = _client(database)

    async def _scenario():
        async with client_manager() as api_client:
            owner = await _register(api_client, "owner@example.com")
            metric_uuid = await _create_metric(api_client, owner, "Signups")
            tiles = [_tile("signups", 0, 0, [metric_uuid])]

            blank = await api_client.post("/dashboards", headers=owner, json={"name": "   ", "tiles": tiles})
            assert blank.status_code == 422

            created = await api_client.post(
                "/dashboards", headers=owner, json={"name": "  Growth  ", "tiles": tiles}
            )
            assert created.status_code == 201
            dashboard = created.json()
            assert dashboard["name"] == "Growth"

            blank_update = await api_client.put(
                f"/dashboards/{dashboard['uuid']}", headers=owner, json={"name": " \t "}
            )
            assert blank_update.status_code == 422

            renamed = await api_client.put(
                f"/dashboards/{dashboard['uuid']}", headers=owner, json={"name": "  Growth Q2 "}
            )
            assert renamed.status_code == 200
            assert renamed.json()["name"] == "Growth Q2"

            fetched = await api_client.get(f"/dashboards/{dashboard['uuid']}", headers=owner)
            assert fetched.json()["name"] == "Growth Q2"

            metric = await api_client.post(
                "/metrics", headers=owner, json={"name": "  Churn ", "value_type": "percentage"}
            )
            assert metric.json()["name"] == "Churn"
        await database.dispose()

    asyncio.run(_scenario())
