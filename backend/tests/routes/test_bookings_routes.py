"""HTTP surface for bookings: envelopes, status codes and auth."""

from datetime import timedelta

import pytest

from app.core.enums import BookingStatus


def _create(client, headers, mentor_id, session_time, duration=60):
    return client.post(
        "/api/v1/bookings",
        json={
            "mentor_id": mentor_id,
            "session_time": session_time.isoformat(),
            "duration": duration,
            "session_type": "Mock interview",
            "message": "See you there",
        },
        headers=headers,
    )


@pytest.fixture
def created_booking(client, auth_headers_student, test_mentor, future_session_time):
    response = _create(client, auth_headers_student, test_mentor.id, future_session_time)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def test_create_returns_success_envelope(created_booking, test_mentor):
    assert created_booking["status"] == BookingStatus.PENDING.value
    assert created_booking["payment_status"] == "unpaid"
    assert created_booking["mentor_id"] == test_mentor.id
    assert created_booking["total_amount"] == 500.0
    assert created_booking["mentor"]["full_name"] == "Meera Mentor"


def test_create_without_token_is_unauthorized(client, test_mentor, future_session_time):
    response = _create(client, {}, test_mentor.id, future_session_time)

    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "UNAUTHORIZED"


def test_invalid_token_is_unauthorized(client, test_mentor, future_session_time):
    response = _create(client, {"Authorization": "Bearer not-a-jwt"}, test_mentor.id, future_session_time)

    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Invalid or expired token"


def test_mentor_cannot_create(client, auth_headers_mentor, other_mentor, future_session_time):
    response = _create(client, auth_headers_mentor, other_mentor.id, future_session_time)

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "UNAUTHORIZED"


def test_conflicting_request_is_409(
    client, created_booking, test_mentor, future_session_time, other_student
):
    from tests.conftest import auth_headers_for

    response = _create(
        client,
        auth_headers_for(other_student),
        test_mentor.id,
        future_session_time + timedelta(minutes=15),
    )

    assert response.status_code == 409
    error = response.json()["error"]
    assert error["code"] == "BOOKING_CONFLICT"
    assert error["details"]["conflicting_booking_ids"] == [created_booking["id"]]


def test_malformed_body_is_bad_request(client, auth_headers_student, test_mentor):
    response = client.post(
        "/api/v1/bookings",
        json={"mentor_id": test_mentor.id, "duration": "sixty"},
        headers=auth_headers_student,
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == "BAD_REQUEST"
    assert body["error"]["details"]["errors"]


def test_check_availability(client, created_booking, test_mentor, future_session_time):
    busy = client.post(
        "/api/v1/bookings/check-availability",
        json={
            "mentor_id": test_mentor.id,
            "session_time": future_session_time.isoformat(),
            "duration": 30,
        },
    )
    adjacent = client.post(
        "/api/v1/bookings/check-availability",
        json={
            "mentor_id": test_mentor.id,
            "session_time": (future_session_time + timedelta(minutes=60)).isoformat(),
            "duration": 30,
        },
    )

    assert busy.status_code == 200
    assert busy.json()["available"] is False
    assert [c["id"] for c in busy.json()["conflicts"]] == [created_booking["id"]]
    assert adjacent.json()["available"] is True


def test_manage_session_flow(client, created_booking, auth_headers_mentor):
    confirmed = client.post(
        "/api/v1/bookings/manage",
        json={"session_id": created_booking["id"], "action": "confirm"},
        headers=auth_headers_mentor,
    )
    completed = client.post(
        "/api/v1/bookings/manage",
        json={"session_id": created_booking["id"], "action": "complete", "payment_status": "paid"},
        headers=auth_headers_mentor,
    )

    assert confirmed.status_code == 200
    assert confirmed.json()["data"]["meeting_link"]
    assert completed.json()["data"]["status"] == BookingStatus.COMPLETED.value


def test_manage_session_invalid_action(client, created_booking, auth_headers_mentor):
    response = client.post(
        "/api/v1/bookings/manage",
        json={"session_id": created_booking["id"], "action": "archive"},
        headers=auth_headers_mentor,
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid action"


def test_double_confirm_is_conflict(client, created_booking, auth_headers_mentor):
    url = f"/api/v1/bookings/{created_booking['id']}/confirm"
    assert client.post(url, headers=auth_headers_mentor).status_code == 200

    response = client.post(url, headers=auth_headers_mentor)

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "INVALID_TRANSITION"


def test_cancel_without_body(client, created_booking, auth_headers_student):
    response = client.post(
        f"/api/v1/bookings/{created_booking['id']}/cancel", headers=auth_headers_student
    )

    assert response.status_code == 200
    assert response.json()["data"]["status"] == BookingStatus.CANCELLED.value


def test_outsider_gets_403(client, created_booking, other_student):
    from tests.conftest import auth_headers_for

    response = client.get(
        f"/api/v1/bookings/{created_booking['id']}", headers=auth_headers_for(other_student)
    )

    assert response.status_code == 403


def test_missing_booking_is_404(client, auth_headers_student):
    response = client.get("/api/v1/bookings/01HZZZZZZZZZZZZZZZZZZZZZZZ", headers=auth_headers_student)

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


def test_list_bookings(client, created_booking, auth_headers_student, auth_headers_mentor):
    student_view = client.get("/api/v1/bookings", headers=auth_headers_student)
    mentor_view = client.get("/api/v1/bookings?status=pending", headers=auth_headers_mentor)

    assert [b["id"] for b in student_view.json()["data"]] == [created_booking["id"]]
    assert [b["id"] for b in mentor_view.json()["data"]] == [created_booking["id"]]
