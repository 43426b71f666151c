"""
Exam management router (admin-facing).
Create quiz/video exams, add or replace quiz questions, toggle activation,
delete exams together with their submissions.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, joinedload

from clubexam.database.database import get_db
from clubexam.database.models import Admin, Exam, ExamQuestion, ExamSubmission
from clubexam.database.schemas import ExamCreate, QuestionsPayload
from clubexam.routers.auth_admin import get_current_admin

log = logging.getLogger(__name__)

router = APIRouter(prefix="/exams", tags=["exams"])


# ─── Serializers ───────────────────────────────────────────────────────────────

def question_dict(q: ExamQuestion, include_answer: bool) -> dict:
    data = {
        "id": q.id,
        "question": q.question,
        "optionA": q.option_a,
        "optionB": q.option_b,
        "optionC": q.option_c,
        "optionD": q.option_d,
    }
    if include_answer:
        data["correctOption"] = q.correct_option
    return data


def exam_dict(exam: Exam, include_answers: bool = True) -> dict:
    data = {
        "id": exam.id,
        "examName": exam.exam_name,
        "examCode": exam.exam_code,
        "examType": exam.exam_type,
        "duration": exam.duration_minutes,
        "isActive": exam.is_active,
        "createdAt": exam.created_at.isoformat() if exam.created_at else None,
        "updatedAt": exam.updated_at.isoformat() if exam.updated_at else None,
    }
    if exam.exam_type == "quiz":
        data["questions"] = [question_dict(q, include_answers) for q in exam.questions]
    else:
        data["videoLink"] = exam.video_link
    return data


# ─── Helpers ───────────────────────────────────────────────────────────────────

def _get_exam_or_404(db: Session, exam_id: int) -> Exam:
    exam = db.query(Exam).filter(Exam.id == exam_id).first()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    return exam


def _ensure_questions_editable(db: Session, exam: Exam, verb: str) -> None:
    if exam.exam_type != "quiz":
        raise HTTPException(status_code=400, detail=f"Questions can only be {verb} quiz type exams")
    has_submissions = db.query(ExamSubmission.id).filter(ExamSubmission.exam_id == exam.id).first()
    if has_submissions:
        raise HTTPException(status_code=400, detail="Questions cannot be changed after students have submitted")


def _build_questions(exam: Exam, payload: QuestionsPayload, start: int):
    return [
        ExamQuestion(
            exam_id=exam.id,
            question_order=start + idx,
            question=q.question,
            option_a=q.option_a,
            option_b=q.option_b,
            option_c=q.option_c,
            option_d=q.option_d,
            correct_option=q.correct_option,
        )
        for idx, q in enumerate(payload.questions)
    ]


# ─── Routes ────────────────────────────────────────────────────────────────────

@router.post("", status_code=201)
def create_exam(request: ExamCreate, admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
    """Create a quiz (empty, questions added later) or a video exam."""
    if db.query(Exam.id).filter(Exam.exam_code == request.exam_code).first():
        raise HTTPException(status_code=400, detail="Exam code already exists")

    exam = Exam(
        exam_name=request.exam_name,
        exam_code=request.exam_code,
        exam_type=request.exam_type,
        duration_minutes=request.duration,
        video_link=request.video_link.strip() if request.video_link else None,
        created_by=admin.id,
    )
    db.add(exam)
    db.commit()
    db.refresh(exam)
    log.info("Exam %s (%s) created by admin %s", exam.exam_code, exam.exam_type, admin.id)

    kind = "Quiz" if exam.exam_type == "quiz" else "Video"
    return {"success": True, "data": exam_dict(exam), "message": f"{kind} exam created successfully"}


@router.get("")
def list_exams(admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
    """All exams, newest first, with answers."""
    exams = (
        db.query(Exam)
        .options(joinedload(Exam.questions))
        .order_by(Exam.created_at.desc(), Exam.id.desc())
        .all()
    )
    return {"success": True, "count": len(exams), "data": [exam_dict(e) for e in exams]}


@router.delete("/clear/all")
def delete_all_exams(admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
    """Delete every exam and every submission."""
    submissions_deleted = db.query(ExamSubmission).count()
    exams = db.query(Exam).all()
    for exam in exams:
        db.delete(exam)
    db.commit()
    log.warning("Admin %s cleared %d exam(s) and %d submission(s)", admin.id, len(exams), submissions_deleted)

    return {
        "success": True,
        "message": f"All exams cleared: {len(exams)} exam(s) and {submissions_deleted} submission(s) deleted",
        "data": {"examsDeleted": len(exams), "submissionsDeleted": submissions_deleted},
    }


@router.get("/{exam_id}")
def get_exam(exam_id: int, admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
    """Full exam details including correct options."""
    return {"success": True, "data": exam_dict(_get_exam_or_404(db, exam_id))}


@router.post("/{exam_id}/questions")
def add_questions(
    exam_id: int,
    request: QuestionsPayload,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Append questions to a quiz."""
    exam = _get_exam_or_404(db, exam_id)
    _ensure_questions_editable(db, exam, "added to")

    db.add_all(_build_questions(exam, request, start=len(exam.questions)))
    db.commit()
    db.refresh(exam)

    return {
        "success": True,
        "data": exam_dict(exam),
        "message": f"{len(request.questions)} question(s) added successfully",
    }


@router.put("/{exam_id}/questions")
def replace_questions(
    exam_id: int,
    request: QuestionsPayload,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Replace all questions of a quiz."""
    exam = _get_exam_or_404(db, exam_id)
    _ensure_questions_editable(db, exam, "updated for")

    exam.questions.clear()
    db.flush()
    exam.questions.extend(_build_questions(exam, request, start=0))
    db.commit()
    db.refresh(exam)

    return {"success": True, "data": exam_dict(exam), "message": "Questions updated successfully"}


@router.patch("/{exam_id}/toggle-status")
def toggle_exam_status(exam_id: int, admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
    """Flip is_active. Inactive exams cannot be found by code."""
    exam = _get_exam_or_404(db, exam_id)
    exam.is_active = not exam.is_active
    db.commit()
    db.refresh(exam)

    state = "activated" if exam.is_active else "deactivated"
    return {"success": True, "data": exam_dict(exam), "message": f"Exam {state} successfully"}


@router.delete("/{exam_id}")
def delete_exam(exam_id: int, admin: Admin = Depends(get_current_admin), db: Session = Depends(get_db)):
    """Delete an exam and cascade to its submissions."""
    exam = _get_exam_or_404(db, exam_id)
    submissions_deleted = db.query(ExamSubmission).filter(ExamSubmission.exam_id == exam_id).count()
    db.delete(exam)
    db.commit()
    log.info("Exam %s deleted with %d submission(s)", exam_id, submissions_deleted)

    return {"success": True, "message": f"Exam and {submissions_deleted} submission(s) deleted successfully"}
