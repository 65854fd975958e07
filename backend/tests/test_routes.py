"""
REST adapter tests.

Verifies:
- Missing identity returns 401, missing role returns 403
- Planning errors map to their HTTP status codes
- Employees only see published weeks and their own data
- End-to-end shift and work session flows over HTTP
"""

import pytest

from shiftplan.services import schedule_service

from conftest import BUSINESS_UNIT, employee_headers, manager_headers


def _create_schedule(client, week_start="2024-03-06"):
    resp = client.post(
        "/v1/schedules",
        json={"business_unit_id": BUSINESS_UNIT, "week_start": week_start},
        headers=manager_headers(),
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["schedule"]


def _create_shift(client, schedule_id, employee_id="e1", day="2024-03-05"):
    resp = client.post(
        "/v1/shifts",
        json={
            "schedule_id": schedule_id,
            "employee_id": employee_id,
            "start_time": f"{day}T09:00:00Z",
            "end_time": f"{day}T17:00:00Z",
            "position": "Barista",
        },
        headers=manager_headers(),
    )
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()["shift"]


# =============================================================================
# IDENTITY / ROLES
# =============================================================================


class TestIdentity:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/v1/schedules"),
            ("POST", "/v1/schedules"),
            ("POST", "/v1/shifts"),
            ("POST", "/v1/work-sessions/clock-in"),
            ("GET", "/v1/business-units/bu-1/schedules/week/published?week_start=2024-03-04"),
            ("POST", "/v1/availabilities"),
        ],
    )
    def test_requires_identity(self, client, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/v1/schedules"),
            ("POST", "/v1/schedules"),
            ("POST", "/v1/shifts"),
            ("GET", "/v1/business-units/bu-1/schedules/week?week_start=2024-03-04"),
            ("GET", "/v1/work-sessions/management/business-units/bu-1/unconfirmed"),
            ("POST", "/v1/work-sessions/management/confirm"),
        ],
    )
    def test_employee_denied_management(self, client, method, path):
        resp = getattr(client, method.lower())(path, headers=employee_headers())
        assert resp.status_code == 403, f"{method} {path} returned {resp.status_code}"

    def test_roles_header_case_insensitive(self, client):
        resp = client.get("/v1/schedules", headers={"X-User-Id": "a-1", "X-User-Roles": "employee, admin"})
        assert resp.status_code == 200


# =============================================================================
# SCHEDULES
# =============================================================================


class TestScheduleRoutes:

    def test_create_normalizes_and_conflicts(self, client):
        schedule = _create_schedule(client)
        assert schedule["week_start"] == "2024-03-04T00:00:00Z"
        assert schedule["status"] == "DRAFT"

        resp = client.post(
            "/v1/schedules",
            json={"business_unit_id": BUSINESS_UNIT, "week_start": "2024-03-08"},
            headers=manager_headers(),
        )
        assert resp.status_code == 409

    def test_missing_fields_400(self, client):
        resp = client.post("/v1/schedules", json={"business_unit_id": BUSINESS_UNIT}, headers=manager_headers())
        assert resp.status_code == 400
        assert "week_start" in resp.get_json()["error"]

    def test_unknown_schedule_404(self, client):
        assert client.get("/v1/schedules/missing", headers=manager_headers()).status_code == 404

    def test_publish_then_update_409(self, client):
        schedule = _create_schedule(client)
        resp = client.post(f"/v1/schedules/{schedule['id']}/publish", headers=manager_headers())
        assert resp.get_json()["schedule"]["status"] == "PUBLISHED"

        resp = client.put(
            f"/v1/schedules/{schedule['id']}",
            json={"business_unit_id": BUSINESS_UNIT, "week_start": "2024-03-04"},
            headers=manager_headers(),
        )
        assert resp.status_code == 409

        resp = client.post(f"/v1/schedules/{schedule['id']}/draft", headers=manager_headers())
        assert resp.get_json()["schedule"]["status"] == "DRAFT"

    def test_employee_sees_only_published_week(self, client):
        schedule = _create_schedule(client)
        _create_shift(client, schedule["id"])
        path = f"/v1/business-units/{BUSINESS_UNIT}/schedules/week/published?week_start=2024-03-07"

        assert client.get(path, headers=employee_headers()).status_code == 409

        client.post(f"/v1/schedules/{schedule['id']}/publish", headers=manager_headers())
        resp = client.get(path, headers=employee_headers())
        assert resp.status_code == 200
        assert len(resp.get_json()["schedule"]["shifts"]) == 1

    def test_manager_sees_draft_week(self, client):
        _create_schedule(client)
        resp = client.get(
            f"/v1/business-units/{BUSINESS_UNIT}/schedules/week?week_start=2024-03-04",
            headers=manager_headers(),
        )
        assert resp.status_code == 200
        assert resp.get_json()["schedule"]["status"] == "DRAFT"

    def test_monthly_schedule_own_only(self, client):
        schedule = _create_schedule(client)
        _create_shift(client, schedule["id"], employee_id="e1")
        path = f"/v1/business-units/{BUSINESS_UNIT}/users/e1/monthly-schedule?month=2024-03-01"

        assert client.get(path, headers=employee_headers("e2")).status_code == 403
        assert client.get(path, headers=employee_headers("e1")).get_json()["weeks"] == []

        weeks = client.get(path, headers=manager_headers()).get_json()["weeks"]
        assert len(weeks) == 1
        assert weeks[0]["status"] == "DRAFT"


# =============================================================================
# SHIFTS
# =============================================================================


class TestShiftRoutes:

    def test_invalid_window_400(self, client):
        schedule = _create_schedule(client)
        resp = client.post(
            "/v1/shifts",
            json={
                "schedule_id": schedule["id"],
                "employee_id": "e1",
                "start_time": "2024-03-05T17:00:00Z",
                "end_time": "2024-03-05T09:00:00Z",
            },
            headers=manager_headers(),
        )
        assert resp.status_code == 400

    def test_delete_then_404(self, client):
        schedule = _create_schedule(client)
        shift = _create_shift(client, schedule["id"])

        resp = client.delete(f"/v1/shifts/{shift['id']}", headers=manager_headers())
        assert resp.status_code == 204
        assert client.get(f"/v1/shifts/{shift['id']}", headers=manager_headers()).status_code == 404
        assert client.get(f"/v1/work-sessions/shift/{shift['id']}", headers=manager_headers()).status_code == 404

    def test_employee_cannot_view_others_shifts(self, client):
        schedule = _create_schedule(client)
        shift = _create_shift(client, schedule["id"], employee_id="e1")

        assert client.get(f"/v1/shifts/{shift['id']}", headers=employee_headers("e1")).status_code == 200
        assert client.get(f"/v1/shifts/{shift['id']}", headers=employee_headers("e2")).status_code == 403
        assert client.get("/v1/users/e1/shifts", headers=employee_headers("e2")).status_code == 403

    def test_conflict_endpoint(self, client):
        schedule = _create_schedule(client)
        shift = _create_shift(client, schedule["id"])

        resp = client.get(
            "/v1/users/e1/conflicts?start_time=2024-03-05T12:00:00Z&end_time=2024-03-05T20:00:00Z",
            headers=employee_headers(),
        )
        body = resp.get_json()
        assert body["has_conflict"] is True
        assert body["conflicting_shift_ids"] == [shift["id"]]

        resp = client.get(
            "/v1/users/e1/conflicts?start_time=2024-03-05T17:00:00Z&end_time=2024-03-05T18:00:00Z",
            headers=employee_headers(),
        )
        assert resp.get_json()["has_conflict"] is False

    def test_archived_schedule_rejects_shift(self, client):
        schedule = _create_schedule(client)
        schedule_service.archive_schedule(schedule["id"])
        resp = client.post(
            "/v1/shifts",
            json={
                "schedule_id": schedule["id"],
                "employee_id": "e1",
                "start_time": "2024-03-05T09:00:00Z",
                "end_time": "2024-03-05T17:00:00Z",
            },
            headers=manager_headers(),
        )
        assert resp.status_code == 409


# =============================================================================
# WORK SESSIONS / NOTES
# =============================================================================


class TestWorkSessionRoutes:

    def test_clock_in_out_and_review(self, client):
        schedule = _create_schedule(client)
        shift = _create_shift(client, schedule["id"], employee_id="e1")

        resp = client.post("/v1/work-sessions/clock-out", json={"shift_id": shift["id"]}, headers=employee_headers())
        assert resp.status_code == 409

        resp = client.post("/v1/work-sessions/clock-in", json={"shift_id": shift["id"]}, headers=employee_headers())
        assert resp.get_json()["work_session"]["status"] == "ACTIVE"

        resp = client.post("/v1/work-sessions/clock-out", json={"shift_id": shift["id"]}, headers=employee_headers())
        session = resp.get_json()["work_session"]
        assert session["status"] == "COMPLETED"
        assert session["total_minutes"] == 0

        queue = client.get(
            f"/v1/work-sessions/management/business-units/{BUSINESS_UNIT}/unconfirmed",
            headers=manager_headers(),
        ).get_json()["work_sessions"]
        assert [row["id"] for row in queue] == [session["id"]]

        resp = client.put(
            "/v1/work-sessions/management/modify-and-confirm",
            json={
                "work_session_id": session["id"],
                "clock_in_time": "2024-03-05T09:00:00Z",
                "clock_out_time": "2024-03-05T17:00:00Z",
            },
            headers=manager_headers("mgr-7"),
        )
        confirmed = resp.get_json()["work_session"]
        assert confirmed["confirmed"] is True
        assert confirmed["confirmed_by"] == "mgr-7"
        assert confirmed["total_minutes"] == 480

        queue = client.get(
            f"/v1/work-sessions/management/business-units/{BUSINESS_UNIT}/unconfirmed",
            headers=manager_headers(),
        ).get_json()["work_sessions"]
        assert queue == []

    def test_owner_can_edit_note(self, client):
        schedule = _create_schedule(client)
        shift = _create_shift(client, schedule["id"], employee_id="e1")
        session = client.get(f"/v1/work-sessions/shift/{shift['id']}", headers=manager_headers()).get_json()["work_session"]

        resp = client.put(
            "/v1/session-notes",
            json={"work_session_id": session["id"], "content": "stayed late"},
            headers=employee_headers("e1"),
        )
        assert resp.status_code == 200

        resp = client.put(
            "/v1/session-notes",
            json={"work_session_id": session["id"], "content": "hijack"},
            headers=employee_headers("e2"),
        )
        assert resp.status_code == 403

        resp = client.get(f"/v1/session-notes/work-session/{session['id']}", headers=manager_headers())
        assert resp.get_json()["session_note"]["content"] == "stayed late"


class TestAvailabilityRoutes:

    def test_employee_manages_own(self, client):
        resp = client.post(
            "/v1/availabilities",
            json={"start_time": "2024-03-05T08:00:00Z", "end_time": "2024-03-05T12:00:00Z", "business_unit_id": BUSINESS_UNIT},
            headers=employee_headers("e1"),
        )
        assert resp.status_code == 201
        availability = resp.get_json()["availability"]
        assert availability["employee_id"] == "e1"

        resp = client.delete(f"/v1/availabilities/{availability['id']}", headers=employee_headers("e2"))
        assert resp.status_code == 403

        resp = client.get(
            f"/v1/business-units/{BUSINESS_UNIT}/availabilities"
            "?start_date=2024-03-05T00:00:00Z&end_date=2024-03-06T00:00:00Z",
            headers=manager_headers(),
        )
        assert [a["id"] for a in resp.get_json()["availabilities"]] == [availability["id"]]


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["checks"]["database"]["status"] == "healthy"
        assert body["checks"]["messaging"]["details"]["pending_notifications"] == 0
