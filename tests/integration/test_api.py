"""Test the HTTP surface: routing, camelCase payloads and error mapping."""
import uuid

import pytest

API = "/api/v1"


@pytest.fixture
async def doctor_id(client):
    res = await client.post(f"{API}/doctors", json={
        "name": "Dr. Kavya Menon",
        "specialization": "Paediatrics",
        "slotDurationMinutes": 30,
        "consultationTypes": ["in_person", "online"],
    })
    assert res.status_code == 201
    return res.json()["id"]


async def test_health(client):
    res = await client.get(f"{API}/health")

    assert res.status_code == 200


class TestDoctorsApi:

    async def test_create_and_fetch(self, client, doctor_id):
        res = await client.get(f"{API}/doctors/{doctor_id}")

        body = res.json()
        assert res.status_code == 200
        assert body["slotDurationMinutes"] == 30
        assert body["consultationTypes"] == ["in_person", "online"]

    async def test_update_settings(self, client, doctor_id):
        res = await client.patch(f"{API}/doctors/{doctor_id}/settings", json={"slotDurationMinutes": 20})

        assert res.status_code == 200
        assert res.json()["slotDurationMinutes"] == 20

    async def test_unknown_doctor_is_404(self, client):
        res = await client.get(f"{API}/doctors/{uuid.uuid4()}")

        assert res.status_code == 404
        assert res.json()["code"] == "not_found"


class TestScheduleApi:

    async def test_weekly_crud(self, client, doctor_id):
        created = await client.post(f"{API}/doctors/{doctor_id}/schedule", json={
            "dayOfWeek": "monday", "startTime": "09:00", "endTime": "12:00",
            "breakStart": "10:30", "breakEnd": "11:00",
        })
        assert created.status_code == 201
        row = created.json()
        assert row["startTime"] == "09:00"
        assert row["breakStart"] == "10:30"
        assert row["isActive"] is True

        week = (await client.get(f"{API}/doctors/{doctor_id}/schedule")).json()
        assert week["monday"]["dayName"] == "Monday"
        assert week["monday"]["schedules"][0]["effectiveSlotDurationMinutes"] == 30

        patched = await client.patch(f"{API}/doctors/{doctor_id}/schedule/{row['id']}", json={"isActive": False})
        assert patched.json()["isActive"] is False

        deleted = await client.delete(f"{API}/doctors/{doctor_id}/schedule/{row['id']}")
        assert deleted.status_code == 204
        again = await client.delete(f"{API}/doctors/{doctor_id}/schedule/{row['id']}")
        assert again.status_code == 404

    async def test_overlap_is_409(self, client, doctor_id):
        url = f"{API}/doctors/{doctor_id}/schedule"
        await client.post(url, json={"dayOfWeek": "monday", "startTime": "09:00", "endTime": "12:00"})

        res = await client.post(url, json={"dayOfWeek": "monday", "startTime": "11:00", "endTime": "13:00"})

        assert res.status_code == 409
        assert res.json()["code"] == "conflict"

    async def test_inverted_range_is_400(self, client, doctor_id):
        res = await client.post(f"{API}/doctors/{doctor_id}/schedule", json={
            "dayOfWeek": "monday", "startTime": "12:00", "endTime": "09:00",
        })

        assert res.status_code == 400
        assert res.json()["code"] == "invalid_argument"

    async def test_replace_week(self, client, doctor_id):
        res = await client.put(f"{API}/doctors/{doctor_id}/schedule", json={"schedules": [
            {"dayOfWeek": "tuesday", "startTime": "09:00", "endTime": "11:00"},
            {"dayOfWeek": "monday", "startTime": "14:00", "endTime": "16:00"},
        ]})

        assert res.status_code == 200
        assert [r["dayOfWeek"] for r in res.json()] == ["monday", "tuesday"]

    async def test_override_lifecycle(self, client, doctor_id):
        url = f"{API}/doctors/{doctor_id}/overrides"
        created = await client.post(url, json={"overrideDate": "2026-03-10", "overrideType": "holiday", "reason": "Holi"})
        assert created.status_code == 201
        override_id = created.json()["id"]

        dup = await client.post(url, json={"overrideDate": "2026-03-10", "overrideType": "leave"})
        assert dup.status_code == 409

        listed = await client.get(url, params={"startDate": "2026-03-01", "endDate": "2026-03-31"})
        assert [o["overrideDate"] for o in listed.json()] == ["2026-03-10"]

        assert (await client.delete(f"{url}/{override_id}")).status_code == 204
        assert (await client.get(url)).json() == []

    async def test_past_override_is_400(self, client, doctor_id):
        res = await client.post(f"{API}/doctors/{doctor_id}/overrides", json={
            "overrideDate": "2026-03-01", "overrideType": "holiday",
        })

        assert res.status_code == 400
        assert res.json()["code"] == "past_date"

    async def test_special_hours_override_shapes_availability(self, client, doctor_id):
        await client.post(f"{API}/doctors/{doctor_id}/schedule", json={
            "dayOfWeek": "tuesday", "startTime": "09:00", "endTime": "17:00",
        })

        created = await client.post(f"{API}/doctors/{doctor_id}/overrides", json={
            "overrideDate": "2026-03-10", "overrideType": "special_hours", "startTime": "10:00", "endTime": "12:00",
        })
        slots = (await client.get(f"{API}/doctors/{doctor_id}/availability", params={"date": "2026-03-10"})).json()["slots"]

        assert created.status_code == 201
        assert (created.json()["startTime"], created.json()["endTime"]) == ("10:00", "12:00")
        assert [s["time"] for s in slots] == ["10:00", "10:30", "11:00", "11:30"]

    @pytest.mark.parametrize("path, body", [
        ("overrides", {"overrideDate": "2026-03-10", "overrideType": "vacation"}),
        ("overrides", {"overrideDate": "2026-03-10", "overrideType": "special_hours", "startTime": "25:00", "endTime": "26:00"}),
        ("schedule", {"dayOfWeek": "funday", "startTime": "09:00", "endTime": "12:00"}),
        ("schedule", {"dayOfWeek": "monday", "startTime": "09:00"}),
    ])
    async def test_malformed_body_is_400(self, client, doctor_id, path, body):
        res = await client.post(f"{API}/doctors/{doctor_id}/{path}", json=body)

        assert res.status_code == 400
        assert res.json()["code"] == "invalid_argument"


class TestAvailabilityApi:

    @pytest.fixture
    async def monday_clinic(self, client, doctor_id):
        await client.post(f"{API}/doctors/{doctor_id}/schedule", json={
            "dayOfWeek": "monday", "startTime": "09:00", "endTime": "10:00",
        })
        return doctor_id

    async def test_slots_for_a_date(self, client, monday_clinic):
        res = await client.get(f"{API}/doctors/{monday_clinic}/availability", params={"date": "2026-03-09"})

        body = res.json()
        assert res.status_code == 200
        assert body["consultationType"] == "in_person"
        assert body["slots"] == [
            {"time": "09:00", "endTime": "09:30", "available": True},
            {"time": "09:30", "endTime": "10:00", "available": True},
        ]

    async def test_bad_date_is_400(self, client, monday_clinic):
        res = await client.get(f"{API}/doctors/{monday_clinic}/availability", params={"date": "09-03-2026"})

        assert res.status_code == 400

    async def test_unknown_type_is_400(self, client, monday_clinic):
        res = await client.get(f"{API}/doctors/{monday_clinic}/availability", params={
            "date": "2026-03-09", "consultationType": "home_visit",
        })

        assert res.status_code == 400

    async def test_unknown_doctor_is_404(self, client):
        res = await client.get(f"{API}/doctors/{uuid.uuid4()}/availability", params={"date": "2026-03-09"})

        assert res.status_code == 404

    async def test_range(self, client, monday_clinic):
        res = await client.get(f"{API}/doctors/{monday_clinic}/availability/range", params={
            "startDate": "2026-03-09", "days": 2,
        })

        days = res.json()
        assert [d["dayOfWeek"] for d in days] == ["monday", "tuesday"]
        assert [d["isAvailable"] for d in days] == [True, False]

    async def test_available_dates(self, client, monday_clinic):
        res = await client.get(f"{API}/doctors/{monday_clinic}/available-dates", params={
            "startDate": "2026-03-03", "endDate": "2026-03-20",
        })

        assert res.json()["dates"] == ["2026-03-09", "2026-03-16"]


class TestAppointmentsApi:

    @pytest.fixture
    async def monday_clinic(self, client, doctor_id):
        await client.post(f"{API}/doctors/{doctor_id}/schedule", json={
            "dayOfWeek": "monday", "startTime": "09:00", "endTime": "10:00",
        })
        return doctor_id

    async def test_book_then_slot_is_taken(self, client, monday_clinic):
        res = await client.post(f"{API}/doctors/{monday_clinic}/appointments", json={
            "scheduledDate": "2026-03-09", "scheduledStart": "09:30",
        })
        assert res.status_code == 201
        appt = res.json()
        assert appt["scheduledEnd"] == "10:00"
        assert appt["status"] == "pending_payment"

        slots = (await client.get(f"{API}/doctors/{monday_clinic}/availability", params={"date": "2026-03-09"})).json()["slots"]
        assert [s["available"] for s in slots] == [True, False]

        again = await client.post(f"{API}/doctors/{monday_clinic}/appointments", json={
            "scheduledDate": "2026-03-09", "scheduledStart": "09:30",
        })
        assert again.status_code == 409

    async def test_status_change(self, client, monday_clinic):
        appt = (await client.post(f"{API}/doctors/{monday_clinic}/appointments", json={
            "scheduledDate": "2026-03-09", "scheduledStart": "09:00",
        })).json()

        res = await client.post(f"{API}/appointments/{appt['id']}/status", json={"status": "confirmed"})
        assert res.json()["status"] == "confirmed"

        fetched = await client.get(f"{API}/appointments/{appt['id']}")
        assert fetched.json()["status"] == "confirmed"

        bad = await client.post(f"{API}/appointments/{appt['id']}/status", json={"status": "completed"})
        assert bad.status_code == 409
