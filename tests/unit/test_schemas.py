from datetime import datetime, time, timedelta, timezone

from pydantic import ValidationError
import pytest

from mentorhub.core.enums import BookingStatus, SessionType
from mentorhub.schemas.availability import SlotCreateRequest, SlotRangeRequest
from mentorhub.schemas.booking import BookingAdminUpdateRequest, BookingCreateRequest


def test_clock_time_parses_and_serializes():
    request = SlotCreateRequest.model_validate(
        {"date": "2026-03-02", "startTime": "09:30", "endTime": "10:15"}
    )
    assert (request.start_time, request.end_time) == (time(9, 30), time(10, 15))
    dumped = request.model_dump(by_alias=True, mode="json")
    assert dumped["startTime"] == "09:30"


@pytest.mark.parametrize("value", ["9:30", "24:00", "09:60", "0930"])
def test_clock_time_rejects_malformed(value):
    with pytest.raises(ValidationError):
        SlotCreateRequest.model_validate({"date": "2026-03-02", "startTime": value, "endTime": "23:00"})


def test_day_of_week_bounds():
    with pytest.raises(ValidationError):
        SlotCreateRequest.model_validate(
            {"date": "2026-03-02", "startTime": "09:00", "endTime": "10:00", "dayOfWeek": 7}
        )


def test_range_request_is_bounded():
    with pytest.raises(ValidationError):
        SlotRangeRequest.model_validate(
            {
                "startDate": "2026-01-01",
                "endDate": "2027-06-01",
                "slots": [{"startTime": "09:00", "endTime": "10:00"}],
            }
        )


def test_booking_create_requires_recorded_session_id():
    with pytest.raises(ValidationError):
        BookingCreateRequest.model_validate({"sessionType": "RECORDED"})

    request = BookingCreateRequest.model_validate(
        {"sessionType": "RECORDED", "recordedSessionId": "01HZZZZZZZZZZZZZZZZZZZZZZZ"}
    )
    assert request.session_type == SessionType.RECORDED


def test_admin_update_strips_timezone():
    aware = datetime(2026, 3, 2, 15, 0, tzinfo=timezone(timedelta(hours=2)))
    request = BookingAdminUpdateRequest(booking_id="b1", status="CONFIRMED", session_date=aware)

    update = request.to_update()

    assert update.status == BookingStatus.CONFIRMED
    assert update.session_date == datetime(2026, 3, 2, 15, 0)
    assert update.changes_schedule is True
    assert update.only_notes is False


def test_admin_update_notes_only():
    update = BookingAdminUpdateRequest(booking_id="b1", admin_notes="called").to_update()
    assert update.only_notes is True
