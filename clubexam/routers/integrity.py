"""
Integrity event router.
Students' clients report guard events (tab hidden, copy attempt, screenshot
key, ...). Events are informational: they never block or alter a submission.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from clubexam.database.database import get_db
from clubexam.database.models import Admin, Exam, IntegrityEvent
from clubexam.database.schemas import IntegrityEventIn
from clubexam.routers.auth_admin import get_current_admin

router = APIRouter(prefix="/exams", tags=["integrity"])


@router.post("/{exam_id}/integrity-events", status_code=201)
def log_integrity_event(exam_id: int, request: IntegrityEventIn, db: Session = Depends(get_db)):
    """Log a client-side guard event during an exam."""
    if not db.query(Exam.id).filter(Exam.id == exam_id).first():
        raise HTTPException(status_code=404, detail="Exam not found")

    event = IntegrityEvent(
        exam_id=exam_id,
        usn=request.usn,
        event_type=request.event_type,
        details=request.details or None,
    )
    db.add(event)
    db.commit()

    return {"success": True, "data": {"id": event.id, "eventType": event.event_type}}


@router.get("/{exam_id}/integrity-events")
def list_integrity_events(exam_id: int, admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
    """All guard events for an exam, grouped by USN, most events first."""
    if not db.query(Exam.id).filter(Exam.id == exam_id).first():
        raise HTTPException(status_code=404, detail="Exam not found")

    events = (
        db.query(IntegrityEvent)
        .filter(IntegrityEvent.exam_id == exam_id)
        .order_by(IntegrityEvent.created_at.asc(), IntegrityEvent.id.asc())
        .all()
    )

    grouped = {}
    for e in events:
        grouped.setdefault(e.usn, []).append({
            "id": e.id,
            "eventType": e.event_type,
            "details": e.details,
            "createdAt": e.created_at.isoformat() if e.created_at else None,
        })

    students = [{"usn": usn, "eventCount": len(items), "events": items} for usn, items in grouped.items()]
    return {
        "success": True,
        "examId": exam_id,
        "studentsWithEvents": len(students),
        "data": sorted(students, key=lambda x: x["eventCount"], reverse=True),
    }
