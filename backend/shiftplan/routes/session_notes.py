# Overview: Flask API routes for session notes.

from flask import Blueprint, request, jsonify, g

from ..decorators import is_privileged, require_identity
from ..errors import PlanningError
from ..services import session_note_service, work_session_service
from ..validation import require_str


session_notes_bp = Blueprint("session_notes", __name__, url_prefix="/v1/session-notes")


def _error(e: PlanningError):
    return jsonify({"error": str(e)}), e.status_code


def _forbidden_unless_owner(work_session_id: str):
    """None when the caller may touch the session's note, else an error response."""
    if is_privileged():
        return None
    try:
        session = work_session_service.get_work_session(work_session_id)
    except PlanningError as e:
        return _error(e)
    if session.user_id != g.user_id:
        return jsonify({"error": "Permission denied"}), 403
    return None


@session_notes_bp.post("")
@require_identity
def create_note_route():
    data = request.get_json(silent=True) or {}

    try:
        work_session_id = require_str(data, "work_session_id")
        denied = _forbidden_unless_owner(work_session_id)
        if denied:
            return denied
        note = session_note_service.create_note(
            work_session_id=work_session_id, content=data.get("content") or ""
        )
        return jsonify({"session_note": note.to_dict()}), 201
    except PlanningError as e:
        return _error(e)


@session_notes_bp.put("")
@require_identity
def update_note_route():
    data = request.get_json(silent=True) or {}

    try:
        work_session_id = require_str(data, "work_session_id")
        denied = _forbidden_unless_owner(work_session_id)
        if denied:
            return denied
        note = session_note_service.update_note(
            work_session_id=work_session_id, content=data.get("content") or ""
        )
        return jsonify({"session_note": note.to_dict()})
    except PlanningError as e:
        return _error(e)


@session_notes_bp.put("/upsert")
@require_identity
def upsert_note_route():
    data = request.get_json(silent=True) or {}

    try:
        work_session_id = require_str(data, "work_session_id")
        denied = _forbidden_unless_owner(work_session_id)
        if denied:
            return denied
        note = session_note_service.upsert_note(
            work_session_id=work_session_id, content=data.get("content") or ""
        )
        return jsonify({"session_note": note.to_dict()})
    except PlanningError as e:
        return _error(e)


@session_notes_bp.get("/work-session/<work_session_id>")
@require_identity
def get_note_route(work_session_id):
    denied = _forbidden_unless_owner(work_session_id)
    if denied:
        return denied

    try:
        note = session_note_service.get_note_for_work_session(work_session_id)
        return jsonify({"session_note": note.to_dict()})
    except PlanningError as e:
        return _error(e)
