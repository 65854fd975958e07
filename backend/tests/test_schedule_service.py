"""
Schedule lifecycle tests.

Verifies:
- One schedule per (business unit, normalized week)
- DRAFT -> PUBLISHED -> DRAFT round trip and the update guard
- Publish emits exactly one schedule-published event, and a failing event
  never undoes the publish
- Published-only reads never expose drafts
- Archive is terminal and freezes shifts
- Monthly view filters by week start and publication
"""

from datetime import date, datetime

import pytest

from shiftplan.errors import ConflictError, InvalidStateError, NotFoundError, ValidationError
from shiftplan.extensions import messaging
from shiftplan.models import SCHEDULE_ARCHIVED, SCHEDULE_DRAFT, SCHEDULE_PUBLISHED
from shiftplan.services import schedule_service, shift_service, work_session_service

from conftest import BUSINESS_UNIT, WEEK

USERS_REQUEST_TOPIC = "users-by-business-unit-request"


# =============================================================================
# CREATE / UPDATE
# =============================================================================


class TestCreateSchedule:

    def test_week_start_normalized_to_monday(self):
        schedule = schedule_service.create_schedule(business_unit_id=BUSINESS_UNIT, week_start=date(2024, 3, 6))
        assert schedule.week_start == datetime(2024, 3, 4)
        assert schedule.status == SCHEDULE_DRAFT
        assert schedule.to_dict()["week_start"] == "2024-03-04T00:00:00Z"

    def test_second_create_same_week_conflicts(self, schedule):
        with pytest.raises(ConflictError):
            schedule_service.create_schedule(business_unit_id=BUSINESS_UNIT, week_start=date(2024, 3, 10))

    def test_same_week_other_business_unit_allowed(self, schedule):
        other = schedule_service.create_schedule(business_unit_id="bu-2", week_start=WEEK)
        assert other.id != schedule.id

    def test_missing_business_unit_rejected(self):
        with pytest.raises(ValidationError):
            schedule_service.create_schedule(business_unit_id="", week_start=WEEK)


class TestUpdateSchedule:

    def test_update_draft(self, schedule):
        updated = schedule_service.update_schedule(
            schedule.id, business_unit_id=BUSINESS_UNIT, week_start=date(2024, 3, 14)
        )
        assert updated.week_start == datetime(2024, 3, 11)

    def test_update_missing(self):
        with pytest.raises(NotFoundError):
            schedule_service.update_schedule("nope", business_unit_id=BUSINESS_UNIT, week_start=WEEK)

    def test_update_into_taken_week_conflicts(self, schedule):
        schedule_service.create_schedule(business_unit_id=BUSINESS_UNIT, week_start=date(2024, 3, 11))
        with pytest.raises(ConflictError):
            schedule_service.update_schedule(
                schedule.id, business_unit_id=BUSINESS_UNIT, week_start=date(2024, 3, 12)
            )


# =============================================================================
# LIFECYCLE
# =============================================================================


class TestScheduleLifecycle:

    def test_publish_update_revert_scenario(self):
        schedule = schedule_service.create_schedule(business_unit_id=BUSINESS_UNIT, week_start=date(2024, 3, 6))
        assert schedule.week_start == datetime(2024, 3, 4)

        published = schedule_service.publish_schedule(schedule.id)
        assert published.status == SCHEDULE_PUBLISHED

        with pytest.raises(InvalidStateError):
            schedule_service.update_schedule(schedule.id, business_unit_id=BUSINESS_UNIT, week_start=WEEK)

        reverted = schedule_service.revert_to_draft(schedule.id)
        assert reverted.status == SCHEDULE_DRAFT

        updated = schedule_service.update_schedule(schedule.id, business_unit_id="bu-9", week_start=WEEK)
        assert updated.business_unit_id == "bu-9"

    def test_publish_twice_fails(self, schedule):
        schedule_service.publish_schedule(schedule.id)
        with pytest.raises(InvalidStateError):
            schedule_service.publish_schedule(schedule.id)

    def test_revert_draft_fails(self, schedule):
        with pytest.raises(InvalidStateError):
            schedule_service.revert_to_draft(schedule.id)

    def test_publish_missing(self):
        with pytest.raises(NotFoundError):
            schedule_service.publish_schedule("missing")

    def test_archive_is_terminal(self, schedule):
        archived = schedule_service.archive_schedule(schedule.id)
        assert archived.status == SCHEDULE_ARCHIVED
        with pytest.raises(InvalidStateError):
            schedule_service.archive_schedule(schedule.id)
        with pytest.raises(InvalidStateError):
            schedule_service.publish_schedule(schedule.id)

    def test_archived_schedule_freezes_shifts(self, schedule, make_shift):
        shift = make_shift()
        schedule_service.archive_schedule(schedule.id)

        with pytest.raises(InvalidStateError):
            make_shift(employee_id="e2")
        with pytest.raises(InvalidStateError):
            shift_service.delete_shift(shift.id)
        with pytest.raises(InvalidStateError):
            shift_service.reassign_shift(shift.id, new_employee_id="e2")


# =============================================================================
# PUBLISH EVENT
# =============================================================================


class TestPublishEvent:

    def test_event_emitted_exactly_once(self, schedule, make_shift, transport):
        make_shift("e1", day=5)
        make_shift("e1", day=6)
        make_shift("e2", day=5)

        schedule_service.publish_schedule(schedule.id)

        requests = transport.sent_to(USERS_REQUEST_TOPIC)
        assert len(requests) == 1
        assert requests[0].key == BUSINESS_UNIT
        correlation_id = requests[0].payload["correlationId"]

        pending = messaging.pending.pop(correlation_id)
        assert pending.schedule["id"] == schedule.id
        assert sorted(pending.user_shifts) == ["e1", "e2"]
        assert len(pending.user_shifts["e1"]) == 2

    def test_revert_emits_nothing(self, schedule, transport):
        schedule_service.publish_schedule(schedule.id)
        schedule_service.revert_to_draft(schedule.id)
        assert len(transport.sent_to(USERS_REQUEST_TOPIC)) == 1

    def test_failed_event_does_not_undo_publish(self, schedule, monkeypatch):
        def boom(*args, **kwargs):
            raise RuntimeError("bus down")

        monkeypatch.setattr(messaging.publisher, "publish_schedule_published", boom)

        schedule_service.publish_schedule(schedule.id)
        assert schedule_service.get_schedule(schedule.id).status == SCHEDULE_PUBLISHED

    def test_event_emitted_when_push_disabled(self, schedule, transport):
        messaging.notifications_enabled = False
        schedule_service.publish_schedule(schedule.id)
        assert len(transport.sent_to(USERS_REQUEST_TOPIC)) == 1


# =============================================================================
# READS
# =============================================================================


class TestScheduleReads:

    def test_published_view_rejects_draft(self, schedule, make_shift):
        make_shift()
        with pytest.raises(InvalidStateError):
            schedule_service.get_published_schedule_with_shifts(BUSINESS_UNIT, WEEK)

    def test_published_view_after_publish(self, schedule, make_shift):
        shift = make_shift()
        schedule_service.publish_schedule(schedule.id)

        view = schedule_service.get_published_schedule_with_shifts(BUSINESS_UNIT, date(2024, 3, 8))
        assert view.schedule.id == schedule.id
        assert [s.id for s in view.shifts] == [shift.id]

    def test_published_view_missing_week(self):
        with pytest.raises(NotFoundError):
            schedule_service.get_published_schedule_with_shifts(BUSINESS_UNIT, WEEK)

    def test_any_status_view_returns_draft(self, schedule, make_shift):
        make_shift()
        view = schedule_service.get_schedule_with_shifts(BUSINESS_UNIT, WEEK)
        assert view.to_dict()["status"] == SCHEDULE_DRAFT
        assert len(view.to_dict()["shifts"]) == 1

    def test_current_schedule(self, schedule):
        assert schedule_service.get_current_schedule(BUSINESS_UNIT, today=date(2024, 3, 10)).id == schedule.id
        assert schedule_service.get_current_schedule(BUSINESS_UNIT, today=date(2024, 3, 11)) is None

    def test_business_unit_listing(self, schedule):
        schedule_service.create_schedule(business_unit_id="bu-2", week_start=WEEK)
        assert [s.id for s in schedule_service.list_business_unit_schedules(BUSINESS_UNIT)] == [schedule.id]
        assert len(schedule_service.list_schedules()) == 2


class TestMonthlySchedule:

    def _schedule_with_shift(self, week_start, employee_id="e1"):
        schedule = schedule_service.create_schedule(business_unit_id=BUSINESS_UNIT, week_start=week_start)
        start = schedule.week_start.replace(hour=9)
        shift = shift_service.create_shift(
            schedule_id=schedule.id,
            employee_id=employee_id,
            start_time=start,
            end_time=start.replace(hour=17),
        )
        return schedule, shift

    def test_weeks_starting_in_month_only(self):
        february, _ = self._schedule_with_shift(date(2024, 2, 26))  # spills into March
        first, _ = self._schedule_with_shift(date(2024, 3, 4))
        second, _ = self._schedule_with_shift(date(2024, 3, 11))
        for schedule in (february, first, second):
            schedule_service.publish_schedule(schedule.id)

        weeks = schedule_service.get_monthly_schedule_for_user(BUSINESS_UNIT, "e1", date(2024, 3, 20))
        assert [w["schedule_id"] for w in weeks] == [first.id, second.id]
        assert weeks[0]["week_start_date"] == "2024-03-04"

    def test_unpublished_weeks_hidden_unless_requested(self):
        published, _ = self._schedule_with_shift(date(2024, 3, 4))
        draft, _ = self._schedule_with_shift(date(2024, 3, 11))
        schedule_service.publish_schedule(published.id)

        visible = schedule_service.get_monthly_schedule_for_user(BUSINESS_UNIT, "e1", date(2024, 3, 1))
        assert [w["schedule_id"] for w in visible] == [published.id]

        everything = schedule_service.get_monthly_schedule_for_user(
            BUSINESS_UNIT, "e1", date(2024, 3, 1), include_unpublished=True
        )
        assert [w["schedule_id"] for w in everything] == [published.id, draft.id]

    def test_rows_carry_session_and_note(self):
        schedule, shift = self._schedule_with_shift(date(2024, 3, 4))
        work_session_service.clock_in(user_id="e1", shift_id=shift.id, at=datetime(2024, 3, 4, 9, 2))
        schedule_service.publish_schedule(schedule.id)

        weeks = schedule_service.get_monthly_schedule_for_user(BUSINESS_UNIT, "e1", date(2024, 3, 1))
        row = weeks[0]["shifts"][0]
        assert row["id"] == shift.id
        assert row["work_session"]["clock_in_time"] == "2024-03-04T09:02:00Z"
        assert row["work_session"]["confirmed"] is False
        assert row["work_session"]["note"]["content"] == ""
