# Overview: Service-layer operations for session notes (one free-text note per work session).

from __future__ import annotations

from ..errors import ConflictError, NotFoundError
from ..extensions import stores
from ..models import SessionNote
from shiftplan.time_utils import utcnow


def _require_work_session(work_session_id: str) -> None:
    if not stores.work_sessions.get(work_session_id):
        raise NotFoundError(f"Work session not found with id: {work_session_id}")


def get_note_for_work_session(work_session_id: str) -> SessionNote:
    note = stores.session_notes.find_by_work_session(work_session_id)
    if not note:
        raise NotFoundError(f"No session note found for work session {work_session_id}")
    return note


def create_note(*, work_session_id: str, content: str = "") -> SessionNote:
    with stores.atomic():
        _require_work_session(work_session_id)
        if stores.session_notes.find_by_work_session(work_session_id):
            raise ConflictError(f"Session note already exists for work session {work_session_id}")
        note = stores.session_notes.save(SessionNote(work_session_id=work_session_id, content=content or ""))
    return note


def update_note(*, work_session_id: str, content: str) -> SessionNote:
    with stores.atomic():
        note = stores.session_notes.find_by_work_session(work_session_id)
        if not note:
            raise NotFoundError(f"No session note found for work session {work_session_id}")
        note.content = content or ""
        note.updated_at = utcnow()
        stores.session_notes.save(note)
    return note


def upsert_note(*, work_session_id: str, content: str) -> SessionNote:
    """Create the note if missing, otherwise overwrite its content."""
    with stores.atomic():
        _require_work_session(work_session_id)
        note = stores.session_notes.find_by_work_session(work_session_id)
        if note is None:
            note = SessionNote(work_session_id=work_session_id)
        note.content = content or ""
        note.updated_at = utcnow()
        stores.session_notes.save(note)
    return note
