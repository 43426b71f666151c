"""
Scoreboard router (admin-facing).
Ranked submissions for one exam; clients poll it for live updates.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from clubexam.database.database import get_db
from clubexam.database.models import Admin, Exam
from clubexam.routers.auth_admin import get_current_admin
from clubexam.services.scoreboard import build_scoreboard

router = APIRouter(prefix="/exams", tags=["scoreboard"])


@router.get("/{exam_id}/scoreboard")
def get_scoreboard(exam_id: int, admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
    exam = db.query(Exam).filter(Exam.id == exam_id).first()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    return {"success": True, **build_scoreboard(db, exam)}
