# tests/test_schedules_api.py
"""
Schedule routes over HTTP: envelope, role checks and the admission rules end to end.
"""

import pytest
import pytz
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from gym_scheduler.config import settings
from gym_scheduler.models import Booking, ClassSchedule, User
from gym_scheduler.scheduling import isoformat_utc
from tests.conftest import future_slot, make_schedule


def create(client: TestClient, headers: dict, trainer_id: int, start, **extra):
    payload = {"trainerId": trainer_id, "startTime": start.isoformat(), **extra}
    return client.post("/api/schedules", json=payload, headers=headers)


class TestCreateScheduleRoute:
    def test_admin_creates_schedule(self, client: TestClient, admin_headers: dict, trainer: User):
        start = future_slot(hour=9)
        response = create(client, admin_headers, trainer.id, start)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["statusCode"] == 201
        assert body["message"] == "Class schedule created successfully"
        data = body["data"]
        assert data["startTime"] == isoformat_utc(start)
        assert data["endTime"] == isoformat_utc(future_slot(hour=11))
        assert data["maxTrainees"] == 10
        assert data["trainer"] == {"id": trainer.id, "name": "T1", "email": "t1@example.com"}

    def test_end_to_end_overlap_and_boundary_touch(
        self, client: TestClient, admin_headers: dict, trainer: User
    ):
        first = create(client, admin_headers, trainer.id, future_slot(hour=9))
        assert first.status_code == 201
        assert first.json()["data"]["endTime"] == isoformat_utc(future_slot(hour=11))

        overlapping = create(client, admin_headers, trainer.id, future_slot(hour=10))
        assert overlapping.status_code == 400
        assert overlapping.json()["success"] is False
        assert overlapping.json()["message"] == "Trainer has conflicting schedule"
        assert overlapping.json()["data"]["conflictingSchedule"]["id"] == first.json()["data"]["id"]

        touching = create(client, admin_headers, trainer.id, future_slot(hour=11))
        assert touching.status_code == 201

    def test_sixth_schedule_of_day_rejected(
        self, client: TestClient, admin_headers: dict, trainer: User, other_trainer: User
    ):
        for hour in (8, 10, 12, 14, 16):
            assert create(client, admin_headers, trainer.id, future_slot(hour=hour)).status_code == 201

        response = create(client, admin_headers, other_trainer.id, future_slot(hour=20))

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Maximum daily schedule limit (5) reached"
        assert len(body["data"]["schedules"]) == 5

    def test_unknown_trainer_returns_404(self, client: TestClient, admin_headers: dict):
        response = create(client, admin_headers, 4242, future_slot())
        assert response.status_code == 404
        assert response.json() == {"success": False, "statusCode": 404, "message": "Trainer not found"}

    def test_past_start_returns_400(self, client: TestClient, admin_headers: dict, trainer: User):
        response = create(client, admin_headers, trainer.id, future_slot(days=-1))
        assert response.status_code == 400
        assert "past" in response.json()["message"]

    def test_invalid_timestamp_returns_validation_envelope(
        self, client: TestClient, admin_headers: dict, trainer: User
    ):
        response = client.post(
            "/api/schedules",
            json={"trainerId": trainer.id, "startTime": "not-a-date"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Invalid data provided"
        assert body["data"][0]["field"] == "startTime"

    def test_trainer_cannot_create(self, client: TestClient, trainer_headers: dict, trainer: User):
        response = create(client, trainer_headers, trainer.id, future_slot())
        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_anonymous_cannot_create(self, client: TestClient, trainer: User):
        response = create(client, {}, trainer.id, future_slot())
        assert response.status_code == 401


class TestListSchedulesRoute:
    def test_list_is_paginated_and_includes_bookings(
        self, client: TestClient, db: Session, trainee_headers: dict, trainer: User, trainee: User
    ):
        schedules = [make_schedule(db, trainer, future_slot(days=day)) for day in (1, 2, 3)]
        db.add(Booking(trainee_id=trainee.id, class_schedule_id=schedules[0].id))
        db.commit()

        response = client.get("/api/schedules?page=1&limit=2", headers=trainee_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert [s["id"] for s in data["schedules"]] == [schedules[0].id, schedules[1].id]
        first = data["schedules"][0]
        assert first["bookedCount"] == 1
        assert first["availableSpots"] == 9
        assert first["bookings"][0]["trainee"]["email"] == "trainee@example.com"
        assert data["pagination"] == {
            "total": 3,
            "page": 1,
            "limit": 2,
            "totalPages": 2,
            "hasNextPage": True,
            "hasPrevPage": False,
        }

    def test_limit_out_of_range_is_rejected(self, client: TestClient, trainee_headers: dict):
        response = client.get("/api/schedules?limit=0", headers=trainee_headers)
        assert response.status_code == 400

    def test_trainer_sees_only_own_schedules(
        self, client: TestClient, db: Session, trainer_headers: dict, trainer: User, other_trainer: User
    ):
        mine = make_schedule(db, trainer, future_slot(hour=9))
        make_schedule(db, other_trainer, future_slot(hour=9))

        response = client.get("/api/schedules/trainer", headers=trainer_headers)

        assert response.status_code == 200
        assert [s["id"] for s in response.json()["data"]] == [mine.id]

    def test_trainee_cannot_use_trainer_listing(self, client: TestClient, trainee_headers: dict):
        assert client.get("/api/schedules/trainer", headers=trainee_headers).status_code == 403


class TestUpdateDeleteScheduleRoutes:
    def test_update_start_time(self, client: TestClient, db: Session, admin_headers: dict, trainer: User):
        schedule = make_schedule(db, trainer, future_slot(hour=9))
        new_start = future_slot(hour=14)

        response = client.put(
            f"/api/schedules/{schedule.id}",
            json={"startTime": new_start.isoformat(), "maxTrainees": 12},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["startTime"] == isoformat_utc(new_start)
        assert data["endTime"] == isoformat_utc(future_slot(hour=16))
        assert data["maxTrainees"] == 12

    def test_update_into_conflict(self, client: TestClient, db: Session, admin_headers: dict, trainer: User):
        make_schedule(db, trainer, future_slot(hour=9))
        later = make_schedule(db, trainer, future_slot(hour=14))

        response = client.put(
            f"/api/schedules/{later.id}",
            json={"startTime": future_slot(hour=10).isoformat()},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Trainer has conflicting schedule"

    def test_update_missing_schedule(self, client: TestClient, admin_headers: dict):
        response = client.put("/api/schedules/999", json={"maxTrainees": 5}, headers=admin_headers)
        assert response.status_code == 404

    def test_delete_reports_cancelled_bookings(
        self, client: TestClient, db: Session, admin_headers: dict, trainer: User, trainee: User
    ):
        schedule = make_schedule(db, trainer, future_slot())
        db.add(Booking(trainee_id=trainee.id, class_schedule_id=schedule.id))
        db.commit()

        response = client.delete(f"/api/schedules/{schedule.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"cancelledBookings": 1}
        assert db.query(ClassSchedule).count() == 0
        assert db.query(Booking).count() == 0

    def test_delete_missing_schedule(self, client: TestClient, admin_headers: dict):
        response = client.delete("/api/schedules/999", headers=admin_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Schedule not found"


class TestScheduleTimezone:
    @pytest.fixture(autouse=True)
    def warsaw(self, monkeypatch):
        monkeypatch.setattr(settings, "SCHEDULE_TIMEZONE", "Europe/Warsaw")

    def test_naive_start_is_read_as_local_time(self, client: TestClient, admin_headers: dict, trainer: User):
        local_start = future_slot(days=30, hour=9)
        expected = pytz.timezone("Europe/Warsaw").localize(local_start).astimezone(pytz.utc)

        response = create(client, admin_headers, trainer.id, local_start)

        assert response.status_code == 201
        assert response.json()["data"]["startTime"] == isoformat_utc(expected)

    def test_echoed_start_time_does_not_move_schedule(
        self, client: TestClient, admin_headers: dict, trainer: User
    ):
        created = create(client, admin_headers, trainer.id, future_slot(days=30, hour=9)).json()["data"]

        response = client.put(
            f"/api/schedules/{created['id']}",
            json={"startTime": created["startTime"]},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["startTime"] == created["startTime"]
        assert data["endTime"] == created["endTime"]

        listed = client.get("/api/schedules", headers=admin_headers).json()["data"]["schedules"]
        assert listed[0]["startTime"] == created["startTime"]

    def test_nonexistent_local_time_is_rejected(self, client: TestClient, admin_headers: dict, trainer: User):
        # Warsaw clocks jump from 02:00 to 03:00 on 2025-03-30
        response = client.post(
            "/api/schedules",
            json={"trainerId": trainer.id, "startTime": "2025-03-30T02:30:00"},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert "does not exist" in response.json()["message"]
