from decimal import Decimal

from ..conftest import auth_headers_for


def test_enroll_then_list(client, student_headers, test_student, paid_platform, wallet_balance):
    r = client.post("/api/v1/enroll", json={"platformId": paid_platform.id}, headers=student_headers)
    assert r.status_code == 201
    enrollment = r.json()["enrollment"]
    assert enrollment["status"] == "active"
    assert enrollment["isExpired"] is False
    assert enrollment["daysRemaining"] == 30
    assert enrollment["platform"]["price"] == "400.00"
    assert wallet_balance(test_student.id) == Decimal("100.00")

    r = client.get("/api/v1/enroll", headers=student_headers)
    assert r.status_code == 200
    assert [e["id"] for e in r.json()["enrollments"]] == [enrollment["id"]]


def test_enroll_error_codes(client, make_user, student_headers, paid_platform):
    r = client.post("/api/v1/enroll", json={"platformId": paid_platform.id}, headers=student_headers)
    assert r.status_code == 201

    r = client.post("/api/v1/enroll", json={"platformId": paid_platform.id}, headers=student_headers)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "ALREADY_ENROLLED"

    r = client.post(
        "/api/v1/enroll", json={"platformId": "01HZZZZZZZZZZZZZZZZZZZZZZZ"}, headers=student_headers
    )
    assert r.status_code == 404
    assert r.json()["detail"]["code"] == "PLATFORM_NOT_FOUND"

    broke = make_user(balance="10.00")
    r = client.post("/api/v1/enroll", json={"platformId": paid_platform.id}, headers=auth_headers_for(broke))
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "INSUFFICIENT_BALANCE"


def test_renew_active_enrollment_is_refused(client, student_headers, free_platform):
    r = client.post("/api/v1/enroll", json={"platformId": free_platform.id}, headers=student_headers)
    enrollment_id = r.json()["enrollment"]["id"]

    r = client.put("/api/v1/enroll", json={"enrollmentId": enrollment_id}, headers=student_headers)
    assert r.status_code == 400
    assert r.json()["detail"]["code"] == "STILL_ACTIVE"


def test_enroll_rejects_unknown_fields(client, student_headers, paid_platform):
    r = client.post(
        "/api/v1/enroll",
        json={"platformId": paid_platform.id, "price": "0.00"},
        headers=student_headers,
    )
    assert r.status_code == 422
    assert r.headers["content-type"].startswith("application/problem+json")
