"""
Shift service tests.

Verifies:
- Shift creation builds its work session and empty note synchronously
- Deletion removes shift, session, and note together
- Editing times realigns recorded sessions and resets confirmation
- Owner changes re-point the session and clear the cached name
- Swap is all-or-nothing and guarded by the expected owners
- Overlap uses half-open intervals
"""

import json
from datetime import date, datetime

import pytest

from shiftplan.errors import InvalidStateError, NotFoundError, ValidationError
from shiftplan.extensions import stores
from shiftplan.models import SESSION_COMPLETED, SESSION_CREATED, SYSTEM_ACTOR
from shiftplan.messaging import listeners
from shiftplan.services import schedule_service, session_note_service, shift_service, work_session_service

from conftest import BUSINESS_UNIT

NAME_REQUEST_TOPIC = "user-info-request"


# =============================================================================
# CREATE / DELETE
# =============================================================================


class TestCreateShift:

    def test_creates_session_and_empty_note(self, make_shift):
        shift = make_shift()

        session = work_session_service.get_work_session_for_shift(shift.id)
        assert session.status == SESSION_CREATED
        assert session.user_id == "e1"
        assert session.clock_in_time is None
        assert session.clock_out_time is None
        assert session.confirmed is False

        note = session_note_service.get_note_for_work_session(session.id)
        assert note.content == ""

    def test_end_before_start_rejected(self, schedule):
        with pytest.raises(ValidationError):
            shift_service.create_shift(
                schedule_id=schedule.id,
                employee_id="e1",
                start_time=datetime(2024, 3, 5, 17),
                end_time=datetime(2024, 3, 5, 9),
            )

    def test_zero_length_rejected(self, schedule):
        with pytest.raises(ValidationError):
            shift_service.create_shift(
                schedule_id=schedule.id,
                employee_id="e1",
                start_time=datetime(2024, 3, 5, 9),
                end_time=datetime(2024, 3, 5, 9),
            )

    def test_missing_schedule(self):
        with pytest.raises(NotFoundError):
            shift_service.create_shift(
                schedule_id="missing",
                employee_id="e1",
                start_time=datetime(2024, 3, 5, 9),
                end_time=datetime(2024, 3, 5, 17),
            )

    def test_allowed_in_published_schedule(self, schedule, make_shift):
        schedule_service.publish_schedule(schedule.id)
        assert make_shift().schedule_id == schedule.id

    def test_requests_display_name(self, make_shift, transport):
        shift = make_shift()
        requests = transport.sent_to(NAME_REQUEST_TOPIC)
        assert len(requests) == 1
        assert requests[0].payload["userId"] == "e1"
        assert requests[0].payload["shiftId"] == shift.id

    def test_name_resolution_failure_does_not_fail_create(self, schedule, monkeypatch):
        from shiftplan.extensions import messaging

        def boom(*args, **kwargs):
            raise RuntimeError("directory down")

        monkeypatch.setattr(messaging.name_resolver, "request", boom)
        shift = shift_service.create_shift(
            schedule_id=schedule.id,
            employee_id="e1",
            start_time=datetime(2024, 3, 5, 9),
            end_time=datetime(2024, 3, 5, 17),
        )
        assert shift_service.get_shift(shift.id).employee_first_name is None


class TestDeleteShift:

    def test_cascades_session_and_note(self, make_shift):
        shift = make_shift()
        session = work_session_service.get_work_session_for_shift(shift.id)

        shift_service.delete_shift(shift.id)

        with pytest.raises(NotFoundError):
            shift_service.get_shift(shift.id)
        with pytest.raises(NotFoundError):
            work_session_service.get_work_session(session.id)
        with pytest.raises(NotFoundError):
            session_note_service.get_note_for_work_session(session.id)

    def test_delete_missing(self):
        with pytest.raises(NotFoundError):
            shift_service.delete_shift("missing")


# =============================================================================
# UPDATE / RECONCILIATION
# =============================================================================


class TestUpdateShift:

    def _update(self, shift, **changes):
        fields = {
            "schedule_id": shift.schedule_id,
            "employee_id": shift.employee_id,
            "start_time": shift.start_time,
            "end_time": shift.end_time,
            "position": shift.position,
        }
        fields.update(changes)
        return shift_service.update_shift(shift.id, **fields)

    def test_untouched_session_without_clock_in(self, make_shift):
        shift = make_shift()
        self._update(shift, start_time=datetime(2024, 3, 5, 10), end_time=datetime(2024, 3, 5, 18))

        session = work_session_service.get_work_session_for_shift(shift.id)
        assert session.status == SESSION_CREATED
        assert session.clock_in_time is None
        assert session.modified_by is None

    def test_recorded_session_realigned_and_unconfirmed(self, make_shift):
        shift = make_shift()
        work_session_service.clock_in(user_id="e1", shift_id=shift.id, at=datetime(2024, 3, 5, 9, 5))
        session = work_session_service.clock_out(user_id="e1", shift_id=shift.id, at=datetime(2024, 3, 5, 17, 10))
        work_session_service.confirm_work_session(session.id, confirmed_by="mgr-1")

        self._update(shift, start_time=datetime(2024, 3, 5, 10), end_time=datetime(2024, 3, 5, 18))

        session = work_session_service.get_work_session(session.id)
        assert session.clock_in_time == datetime(2024, 3, 5, 10)
        assert session.clock_out_time == datetime(2024, 3, 5, 18)
        assert session.total_minutes == 480
        assert session.status == SESSION_COMPLETED
        assert session.modified_by == SYSTEM_ACTOR
        assert session.original_clock_in_time == datetime(2024, 3, 5, 9, 5)
        assert session.original_clock_out_time == datetime(2024, 3, 5, 17, 10)
        assert session.confirmed is False
        assert session.confirmed_by is None

    def test_position_only_change_keeps_confirmation(self, make_shift):
        shift = make_shift()
        work_session_service.clock_in(user_id="e1", shift_id=shift.id, at=datetime(2024, 3, 5, 9, 5))
        session = work_session_service.confirm_work_session(
            work_session_service.get_work_session_for_shift(shift.id).id, confirmed_by="mgr-1"
        )

        self._update(shift, position="Cashier")

        assert work_session_service.get_work_session(session.id).confirmed is True

    def test_owner_change_repoints_session(self, make_shift, transport):
        shift = make_shift()
        shift_service.apply_resolved_name(shift.id, "Ada", "Lovelace")
        transport.clear()

        updated = self._update(shift, employee_id="e2")

        assert updated.employee_id == "e2"
        assert updated.employee_first_name is None
        assert work_session_service.get_work_session_for_shift(shift.id).user_id == "e2"
        assert [m.payload["userId"] for m in transport.sent_to(NAME_REQUEST_TOPIC)] == ["e2"]

    def test_move_into_archived_schedule_rejected(self, make_shift):
        shift = make_shift()
        archived = schedule_service.create_schedule(business_unit_id=BUSINESS_UNIT, week_start=date(2024, 3, 11))
        schedule_service.archive_schedule(archived.id)

        with pytest.raises(InvalidStateError):
            self._update(shift, schedule_id=archived.id)

    def test_missing_target_schedule(self, make_shift):
        shift = make_shift()
        with pytest.raises(NotFoundError):
            self._update(shift, schedule_id="missing")


# =============================================================================
# EXCHANGES
# =============================================================================


class TestReassignShift:

    def test_reassign(self, make_shift, transport):
        shift = make_shift()
        shift_service.apply_resolved_name(shift.id, "Ada", "Lovelace")

        shift_service.reassign_shift(shift.id, new_employee_id="e2")

        reloaded = shift_service.get_shift(shift.id)
        assert reloaded.employee_id == "e2"
        assert reloaded.employee_first_name is None
        assert reloaded.employee_last_name is None
        assert work_session_service.get_work_session_for_shift(shift.id).user_id == "e2"
        assert transport.sent_to(NAME_REQUEST_TOPIC)[-1].payload["userId"] == "e2"

    def test_reassign_missing(self):
        with pytest.raises(NotFoundError):
            shift_service.reassign_shift("missing", new_employee_id="e2")


class TestSwapShifts:

    def test_swap(self, make_shift):
        a = make_shift("e1", day=5)
        b = make_shift("e2", day=6)

        shift_service.swap_shifts(
            shift_a_id=a.id, shift_b_id=b.id, expected_employee_a="e1", expected_employee_b="e2"
        )

        assert shift_service.get_shift(a.id).employee_id == "e2"
        assert shift_service.get_shift(b.id).employee_id == "e1"
        assert work_session_service.get_work_session_for_shift(a.id).user_id == "e2"
        assert work_session_service.get_work_session_for_shift(b.id).user_id == "e1"

    def test_stale_owner_changes_nothing(self, make_shift):
        a = make_shift("e1", day=5)
        b = make_shift("e2", day=6)

        with pytest.raises(ValidationError):
            shift_service.swap_shifts(
                shift_a_id=a.id, shift_b_id=b.id, expected_employee_a="e3", expected_employee_b="e2"
            )

        assert shift_service.get_shift(a.id).employee_id == "e1"
        assert shift_service.get_shift(b.id).employee_id == "e2"
        assert work_session_service.get_work_session_for_shift(a.id).user_id == "e1"
        assert work_session_service.get_work_session_for_shift(b.id).user_id == "e2"

    def test_failure_midway_rolls_back(self, make_shift, monkeypatch):
        a = make_shift("e1", day=5)
        b = make_shift("e2", day=6)

        original_save = stores.shifts.save
        calls = []

        def fail_on_second_save(entity):
            calls.append(entity.id)
            if len(calls) == 2:
                raise RuntimeError("connection lost")
            return original_save(entity)

        monkeypatch.setattr(stores.shifts, "save", fail_on_second_save)

        with pytest.raises(RuntimeError):
            shift_service.swap_shifts(
                shift_a_id=a.id, shift_b_id=b.id, expected_employee_a="e1", expected_employee_b="e2"
            )
        monkeypatch.undo()

        assert calls == [a.id, b.id]
        assert shift_service.get_shift(a.id).employee_id == "e1"
        assert shift_service.get_shift(b.id).employee_id == "e2"
        assert work_session_service.get_work_session_for_shift(a.id).user_id == "e1"
        assert work_session_service.get_work_session_for_shift(b.id).user_id == "e2"

    def test_same_owner_rejected(self, make_shift):
        a = make_shift("e1", day=5)
        b = make_shift("e1", day=6)
        with pytest.raises(ValidationError):
            shift_service.swap_shifts(
                shift_a_id=a.id, shift_b_id=b.id, expected_employee_a="e1", expected_employee_b="e1"
            )

    def test_missing_shift(self, make_shift):
        a = make_shift("e1", day=5)
        with pytest.raises(NotFoundError):
            shift_service.swap_shifts(
                shift_a_id=a.id, shift_b_id="missing", expected_employee_a="e1", expected_employee_b="e2"
            )


# =============================================================================
# OVERLAP / QUERIES
# =============================================================================


class TestFindOverlapping:

    def test_touching_end_is_not_overlap(self, make_shift):
        make_shift("e1", day=5, start=9, end=12)
        assert shift_service.find_overlapping("e1", datetime(2024, 3, 5, 12), datetime(2024, 3, 5, 15)) == []

    def test_one_minute_past_end_overlaps(self, make_shift):
        shift = make_shift("e1", day=5, start=9, end=12)
        found = shift_service.find_overlapping("e1", datetime(2024, 3, 5, 11, 59), datetime(2024, 3, 5, 15))
        assert [s.id for s in found] == [shift.id]

    def test_excluded_shift_ignored(self, make_shift):
        shift = make_shift("e1", day=5)
        found = shift_service.find_overlapping(
            "e1", datetime(2024, 3, 5, 10), datetime(2024, 3, 5, 11), exclude_shift_id=shift.id
        )
        assert found == []

    def test_other_employee_ignored(self, make_shift):
        make_shift("e2", day=5)
        assert shift_service.find_overlapping("e1", datetime(2024, 3, 5, 10), datetime(2024, 3, 5, 11)) == []


class TestShiftQueries:

    def test_business_unit_week_and_day(self, make_shift):
        monday = make_shift("e1", day=4)
        tuesday = make_shift("e2", day=5)

        week = shift_service.list_business_unit_shifts_for_week(BUSINESS_UNIT, date(2024, 3, 7))
        assert [s.id for s in week] == [monday.id, tuesday.id]

        day = shift_service.list_business_unit_shifts_for_day(BUSINESS_UNIT, date(2024, 3, 5))
        assert [s.id for s in day] == [tuesday.id]

    def test_upcoming_uses_now(self, make_shift):
        make_shift("e1", day=4)
        later = make_shift("e1", day=6)
        upcoming = shift_service.list_upcoming_employee_shifts("e1", now=datetime(2024, 3, 5, 12))
        assert [s.id for s in upcoming] == [later.id]

    def test_comprehensive_view(self, make_shift):
        shift = make_shift()
        rows = shift_service.list_shifts_with_sessions(
            BUSINESS_UNIT, start=datetime(2024, 3, 4), end=datetime(2024, 3, 11)
        )
        assert len(rows) == 1
        assert rows[0]["id"] == shift.id
        assert rows[0]["work_session"]["status"] == SESSION_CREATED
        assert rows[0]["session_note"]["content"] == ""

    def test_resolved_name_applied_from_reply(self, make_shift):
        shift = make_shift()
        handled = listeners.handle_user_info_response(
            json.dumps({"requestId": "r1", "userId": "e1", "shiftId": shift.id, "firstName": "Ada", "lastName": "Lovelace"})
        )
        assert handled is True
        reloaded = shift_service.get_shift(shift.id)
        assert (reloaded.employee_first_name, reloaded.employee_last_name) == ("Ada", "Lovelace")

    def test_resolved_name_for_deleted_shift_ignored(self):
        assert shift_service.apply_resolved_name("missing", "Ada", "Lovelace") is None
