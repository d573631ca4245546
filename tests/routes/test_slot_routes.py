from datetime import time, timedelta

from ..conftest import NEXT_MONDAY


def test_slot_create_is_idempotent(client, admin_headers):
    payload = {"date": NEXT_MONDAY.isoformat(), "startTime": "09:00", "endTime": "10:00"}

    r = client.post("/api/v1/slot", json=payload, headers=admin_headers)
    assert r.status_code == 201
    first = r.json()
    assert first["created"] is True
    assert first["slot"]["startTime"] == "09:00"
    assert first["slot"]["isBooked"] is False

    r = client.post("/api/v1/slot", json=payload, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["created"] is False
    assert r.json()["slot"]["id"] == first["slot"]["id"]


def test_slot_create_validates_times(client, admin_headers):
    payload = {"date": NEXT_MONDAY.isoformat(), "startTime": "11:00", "endTime": "10:00"}
    r = client.post("/api/v1/slot", json=payload, headers=admin_headers)
    assert r.status_code == 422

    payload = {"date": NEXT_MONDAY.isoformat(), "startTime": "9am", "endTime": "10:00"}
    r = client.post("/api/v1/slot", json=payload, headers=admin_headers)
    assert r.status_code == 422


def test_bulk_and_range_report_created_counts(client, admin_headers, restore_settings):
    slots = [{"startTime": "09:00", "endTime": "10:00"}, {"startTime": "10:00", "endTime": "11:00"}]

    r = client.post(
        "/api/v1/slot/bulk",
        json={"date": NEXT_MONDAY.isoformat(), "slots": slots},
        headers=admin_headers,
    )
    assert r.status_code == 201
    assert r.json() == {"createdCount": 2, "totalRequested": 2}

    restore_settings(slot_duplicate_report="summary")
    r = client.post(
        "/api/v1/slot/range",
        json={
            "startDate": NEXT_MONDAY.isoformat(),
            "endDate": (NEXT_MONDAY + timedelta(days=6)).isoformat(),
            "slots": slots,
            "excludeWeekends": True,
        },
        headers=admin_headers,
    )
    assert r.status_code == 201
    # Monday's two slots already exist; four more weekdays remain.
    assert r.json() == {"createdCount": 8, "totalRequested": 10, "skippedCount": 2}


def test_range_rejects_inverted_dates(client, admin_headers):
    r = client.post(
        "/api/v1/slot/range",
        json={
            "startDate": NEXT_MONDAY.isoformat(),
            "endDate": (NEXT_MONDAY - timedelta(days=1)).isoformat(),
            "slots": [{"startTime": "09:00", "endTime": "10:00"}],
        },
        headers=admin_headers,
    )
    assert r.status_code == 422


def test_delete_slot_codes(client, admin_headers, make_slot):
    free = make_slot()
    booked = make_slot(start=time(12, 0), end=time(13, 0), is_booked=True)

    r = client.delete(f"/api/v1/slot/{free.id}", headers=admin_headers)
    assert r.status_code == 204

    r = client.delete(f"/api/v1/slot/{free.id}", headers=admin_headers)
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "SLOT_NOT_FOUND"

    r = client.delete(f"/api/v1/slot/{booked.id}", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "SLOT_IN_USE"


def test_delete_all_requires_flag(client, admin_headers, make_slot):
    make_slot()
    make_slot(start=time(12, 0), end=time(13, 0), is_booked=True)

    r = client.delete("/api/v1/slot", headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "VALIDATION_ERROR"

    r = client.delete("/api/v1/slot", params={"deleteAll": "true"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json() == {"deletedCount": 1}


def test_students_only_see_free_slots(client, admin_headers, student_headers, make_slot):
    free = make_slot()
    make_slot(start=time(12, 0), end=time(13, 0), is_booked=True)

    r = client.get("/api/v1/slot", headers=student_headers)
    assert r.status_code == 200
    assert [slot["id"] for slot in r.json()["slots"]] == [free.id]

    r = client.get("/api/v1/slot", headers=admin_headers)
    assert len(r.json()["slots"]) == 2


def test_release_and_retime(client, admin_headers, make_slot):
    booked = make_slot(is_booked=True)

    r = client.put(
        f"/api/v1/slot/{booked.id}",
        json={"startTime": "14:00", "endTime": "15:00"},
        headers=admin_headers,
    )
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "SLOT_IN_USE"

    r = client.post(f"/api/v1/slot/{booked.id}/release", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["isBooked"] is False

    r = client.put(
        f"/api/v1/slot/{booked.id}",
        json={"startTime": "14:00", "endTime": "15:00"},
        headers=admin_headers,
    )
    assert r.status_code == 200
    assert (r.json()["startTime"], r.json()["endTime"]) == ("14:00", "15:00")


def test_slot_admin_routes_forbidden_for_students(client, student_headers):
    r = client.post(
        "/api/v1/slot",
        json={"date": NEXT_MONDAY.isoformat(), "startTime": "09:00", "endTime": "10:00"},
        headers=student_headers,
    )
    assert r.status_code == 403
