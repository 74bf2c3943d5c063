"""Integration tests for API endpoints."""

from __future__ import annotations

from datetime import date, time

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from zoneboard.db import crud
from zoneboard.db.engine import get_db
from zoneboard.main import app
from zoneboard.models import Base
from zoneboard.schedule.errors import JobSourceError

DAY = date(2024, 6, 1)
DISPATCHER = {"X-User-Id": "disp-1", "X-User-Role": "dispatcher"}


@pytest_asyncio.fixture
async def factory():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield session_factory
    app.dependency_overrides.clear()
    await engine.dispose()


@pytest_asyncio.fixture
async def client(factory):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test", headers=DISPATCHER) as ac:
        yield ac


@pytest_asyncio.fixture
async def seeded(factory):
    """Two technicians, one customer and three jobs on DAY."""
    async with factory() as db:
        ana = await crud.create_technician(db, "Ana Ruiz", zone="N")
        ben = await crud.create_technician(db, "Ben Okafor", zone="S")
        customer = await crud.create_customer(db, "Smith Residence", city="Springfield")
        morning = await crud.create_job(
            db, customer.id, zone="N", technician_id=ana.id, scheduled_date=DAY,
            scheduled_time_start=time(9), scheduled_time_end=time(10), position=1000.0,
        )
        evening = await crud.create_job(
            db, customer.id, zone="N", technician_id=ana.id, scheduled_date=DAY,
            scheduled_time_start=time(17), scheduled_time_end=time(18), position=1000.0,
        )
        done = await crud.create_job(
            db, customer.id, zone="S", technician_id=ben.id, scheduled_date=DAY, status="completed",
        )
    return {
        "ana": ana.id, "ben": ben.id, "customer": customer.id,
        "morning": morning.id, "evening": evening.id, "done": done.id,
    }


async def test_healthz(client):
    r = await client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


async def test_missing_identity_is_rejected(client):
    r = await client.get("/api/zone-board", params={"date": "2024-06-01"}, headers={"X-User-Id": ""})
    assert r.status_code == 401


async def test_get_board(client, seeded):
    r = await client.get("/api/zone-board", params={"date": "2024-06-01"})
    assert r.status_code == 200
    board = r.json()
    assert board["board_date"] == "2024-06-01"
    assert [c["zone"] for c in board["columns"]] == ["N", "S", "E", "W", "Central"]
    north = board["columns"][0]
    assert north["total_jobs"] == 2
    assert north["buckets"][0]["jobs"][0]["id"] == seeded["morning"]
    assert north["buckets"][0]["jobs"][0]["time_window_label"] == "9:00 AM - 10:00 AM"
    assert board["columns"][1]["total_jobs"] == 0


async def test_get_board_with_filters(client, seeded):
    r = await client.get(
        "/api/zone-board",
        params={"date": "2024-06-01", "zones": ["S"], "include_terminal": "true"},
    )
    board = r.json()
    assert board["total_jobs"] == 1
    assert board["columns"][1]["buckets"][-1]["jobs"][0]["id"] == seeded["done"]


async def test_technician_sees_only_own_jobs(client, seeded):
    r = await client.get(
        "/api/zone-board",
        params={"date": "2024-06-01", "include_terminal": "true"},
        headers={"X-User-Id": seeded["ben"], "X-User-Role": "technician"},
    )
    assert r.status_code == 200
    assert r.json()["total_jobs"] == 1


async def test_board_source_failure_is_503(client, monkeypatch):
    async def _down(*args, **kwargs):
        raise JobSourceError("database is locked")

    monkeypatch.setattr(crud, "fetch_jobs_for_date", _down)
    r = await client.get("/api/zone-board", params={"date": "2024-06-01"})
    assert r.status_code == 503


async def test_technician_cannot_move_cards(client, seeded):
    r = await client.post(
        "/api/zone-board/move",
        json={"job_id": seeded["morning"], "to_zone": "S", "to_bucket": "afternoon"},
        headers={"X-User-Id": seeded["ana"], "X-User-Role": "technician"},
    )
    assert r.status_code == 403


async def test_move_card(client, seeded):
    r = await client.post(
        "/api/zone-board/move",
        json={"job_id": seeded["morning"], "to_zone": "S", "to_bucket": "afternoon"},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["data"]["scheduled_time_start"] == "13:00:00"
    assert body["data"]["scheduled_time_end"] == "14:00:00"

    r = await client.get("/api/zone-board", params={"date": "2024-06-01"})
    south = r.json()["columns"][1]
    assert south["buckets"][1]["jobs"][0]["id"] == seeded["morning"]


async def test_move_card_conflict_is_409(client, seeded):
    r = await client.post(
        "/api/zone-board/move",
        json={"job_id": seeded["morning"], "to_zone": "N", "to_bucket": "evening"},
    )
    assert r.status_code == 409
    body = r.json()
    assert body["ok"] is False
    assert body["error"] == "conflict"
    assert body["conflicts"][0]["id"] == seeded["evening"]
    assert body["conflicts"][0]["customer_name"] == "Smith Residence"


async def test_move_terminal_job_is_409(client, seeded):
    r = await client.post(
        "/api/zone-board/move",
        json={"job_id": seeded["done"], "to_zone": "N", "to_bucket": "morning"},
    )
    assert r.status_code == 409
    assert r.json()["error"] == "terminal_status"


async def test_move_unknown_job_is_404(client, seeded):
    r = await client.post("/api/zone-board/move", json={"job_id": "ghost", "to_bucket": "any"})
    assert r.status_code == 404
    assert r.json()["message"] == "Job not found"


async def test_move_invalid_bucket_is_rejected(client, seeded):
    r = await client.post(
        "/api/zone-board/move",
        json={"job_id": seeded["morning"], "to_zone": "N", "to_bucket": "midnight"},
    )
    assert r.status_code == 422


async def test_reorder_and_assign(client, seeded):
    r = await client.post("/api/zone-board/reorder", json={"job_id": seeded["evening"], "next_id": seeded["morning"]})
    assert r.status_code == 200
    assert r.json()["data"]["position"] == 500.0

    r = await client.post("/api/zone-board/assign-quick", json={"job_id": seeded["morning"], "technician_id": seeded["ben"]})
    assert r.status_code == 200

    r = await client.post(
        "/api/zone-board/assign",
        json={"job_id": seeded["evening"], "technician_id": seeded["ben"], "scheduled_date": "2024-06-02"},
    )
    assert r.status_code == 200
    assert r.json()["data"]["scheduled_date"] == "2024-06-02"

    r = await client.post("/api/zone-board/unassign", json={"job_id": seeded["evening"]})
    assert r.status_code == 200


async def test_quick_create(client, seeded):
    r = await client.post(
        "/api/zone-board/quick-create",
        json={"customer_id": seeded["customer"], "zone": "E", "bucket": "morning", "scheduled_date": "2024-06-01"},
    )
    assert r.status_code == 201
    job_id = r.json()["data"]["job_id"]

    r = await client.get("/api/zone-board", params={"date": "2024-06-01", "zones": ["E"]})
    east = r.json()["columns"][2]
    assert east["buckets"][0]["jobs"][0]["id"] == job_id


async def test_update_job_time(client, seeded):
    r = await client.put(
        f"/api/schedule/jobs/{seeded['evening']}/time",
        json={"start": "2024-06-01T19:00:00", "end": "2024-06-01T20:00:00"},
    )
    assert r.status_code == 422
    assert r.json()["error"] == "invalid_time_slot"

    r = await client.put(
        f"/api/schedule/jobs/{seeded['evening']}/time",
        json={"start": "2024-06-01T09:30:00", "end": "2024-06-01T10:30:00"},
    )
    assert r.status_code == 409

    r = await client.put(
        f"/api/schedule/jobs/{seeded['evening']}/time",
        json={"start": "2024-06-01T14:00:00", "end": "2024-06-01T15:00:00"},
    )
    assert r.status_code == 200


async def test_conflict_check_rejects_overnight_slot(client, seeded):
    r = await client.post(
        "/api/schedule/conflicts",
        json={"technician_id": seeded["ana"], "start": "2024-06-01T17:00:00", "end": "2024-06-02T01:00:00"},
    )
    assert r.status_code == 422


async def test_conflict_check_and_next_slot(client, seeded):
    r = await client.post(
        "/api/schedule/conflicts",
        json={"technician_id": seeded["ana"], "start": "2024-06-01T09:30:00", "end": "2024-06-01T10:30:00"},
    )
    assert r.status_code == 409
    assert len(r.json()["conflicts"]) == 1

    r = await client.post(
        "/api/schedule/next-slot",
        json={
            "technician_id": seeded["ana"],
            "scheduled_date": "2024-06-01",
            "preferred_start": "09:30",
            "duration_minutes": 30,
        },
    )
    assert r.status_code == 200
    assert r.json()["data"]["slot"] == {"start": "2024-06-01T10:00:00", "end": "2024-06-01T10:30:00"}


async def test_week_view(client, seeded):
    r = await client.get("/api/schedule/week", params={"date": "2024-06-05"})
    assert r.status_code == 200
    body = r.json()
    assert body["week_start"] == "2024-06-02"
    assert body["week_end"] == "2024-06-08"
    assert body["jobs"] == []

    r = await client.get("/api/schedule/week", params={"date": "2024-05-30"})
    assert {j["id"] for j in r.json()["jobs"]} == {seeded["morning"], seeded["evening"]}


async def test_technicians(client, seeded):
    r = await client.get("/api/technicians")
    assert r.status_code == 200
    assert [t["display_name"] for t in r.json()] == ["Ana Ruiz", "Ben Okafor"]

    r = await client.post("/api/technicians", json={"display_name": "Cy"})
    assert r.status_code == 403

    r = await client.post(
        "/api/technicians",
        json={"display_name": "Cy Tran", "zone": "W"},
        headers={"X-User-Id": "admin-1", "X-User-Role": "admin"},
    )
    assert r.status_code == 201
    assert r.json()["zone"] == "W"
