"""
Student-facing exam router.
Look up an exam by its join code, check for an earlier submission, submit a
quiz or a video watch, and checkpoint resumable progress in Redis.
No login: students identify themselves by name + USN.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubexam.config import QUIZ_DRAFT_GRACE_MINUTES, VIDEO_PROGRESS_TTL_HOURS
from clubexam.database.database import get_db
from clubexam.database.models import Exam, ExamSubmission, ExamType, SubmissionAnswer
from clubexam.database.redis_client import (
    NAMESPACE_QUIZ, NAMESPACE_VIDEO, ProgressStore, get_progress_store,
)
from clubexam.database.schemas import ProgressSave, QuizSubmission, VideoSubmission
from clubexam.routers.exams import exam_dict
from clubexam.services import grading

log = logging.getLogger(__name__)

router = APIRouter(prefix="/exams", tags=["exam-student"])

DUPLICATE_MESSAGE = "You have already submitted this exam"


# ─── Helpers ───────────────────────────────────────────────────────────────────

def _now():
    return datetime.now(timezone.utc)


def _get_exam_for_submission(db: Session, exam_id: int, exam_type: ExamType) -> Exam:
    exam = db.query(Exam).filter(Exam.id == exam_id).first()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    if exam.exam_type != exam_type:
        raise HTTPException(status_code=400, detail=f"This endpoint is only for {exam_type.value} submissions")
    return exam


def _ensure_not_submitted(db: Session, exam_id: int, usn: str) -> None:
    existing = (
        db.query(ExamSubmission.id)
        .filter(ExamSubmission.exam_id == exam_id, ExamSubmission.usn == usn)
        .first()
    )
    if existing:
        raise HTTPException(status_code=400, detail=DUPLICATE_MESSAGE)


def _save_submission(db: Session, submission: ExamSubmission) -> None:
    """Insert once. A concurrent insert for the same exam+USN loses on the unique constraint."""
    db.add(submission)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        log.info("Duplicate submission rejected for exam %s, USN %s", submission.exam_id, submission.usn)
        raise HTTPException(status_code=400, detail=DUPLICATE_MESSAGE)


def _progress_namespace(exam: Exam) -> str:
    return NAMESPACE_QUIZ if exam.exam_type == ExamType.QUIZ else NAMESPACE_VIDEO


def _progress_ttl_seconds(exam: Exam) -> int:
    if exam.exam_type == ExamType.QUIZ:
        return (exam.duration_minutes + QUIZ_DRAFT_GRACE_MINUTES) * 60
    return VIDEO_PROGRESS_TTL_HOURS * 3600


# ─── Routes: exam lookup ───────────────────────────────────────────────────────

@router.get("/code/{exam_code}")
def get_exam_by_code(exam_code: str, db: Session = Depends(get_db)):
    """Active exam by join code. Correct options are stripped."""
    exam = (
        db.query(Exam)
        .filter(Exam.exam_code == exam_code.strip().upper(), Exam.is_active.is_(True))
        .first()
    )
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found or inactive")
    return {"success": True, "data": exam_dict(exam, include_answers=False)}


@router.get("/{exam_id}/check-submission/{usn}")
def check_submission(exam_id: int, usn: str, db: Session = Depends(get_db)):
    """Whether this USN already has a submission for the exam."""
    if not db.query(Exam.id).filter(Exam.id == exam_id).first():
        raise HTTPException(status_code=404, detail="Exam not found")
    submitted = (
        db.query(ExamSubmission.id)
        .filter(ExamSubmission.exam_id == exam_id, ExamSubmission.usn == usn.strip().upper())
        .first()
        is not None
    )
    return {"success": True, "hasSubmitted": submitted}


# ─── Routes: submissions ───────────────────────────────────────────────────────

@router.post("/submit-quiz", status_code=201)
def submit_quiz(request: QuizSubmission, db: Session = Depends(get_db)):
    """Grade a quiz on the server and store the single submission for this USN."""
    exam = _get_exam_for_submission(db, request.exam_id, ExamType.QUIZ)
    _ensure_not_submitted(db, exam.id, request.usn)

    if not exam.questions:
        raise HTTPException(status_code=400, detail="Exam has no questions")

    received_at = _now()
    try:
        grading.check_started_at(request.started_at, received_at)
        grade = grading.grade_quiz(
            [q.correct_option for q in exam.questions],
            [a.selected_option for a in request.answers],
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    time_taken = grading.minutes_between(request.started_at, received_at)
    submission = ExamSubmission(
        exam_id=exam.id,
        student_name=request.student_name,
        usn=request.usn,
        exam_type=ExamType.QUIZ.value,
        score=grade.score,
        total_questions=grade.total_questions,
        time_taken=time_taken,
        started_at=request.started_at,
        submitted_at=received_at,
        auto_submitted=request.auto_submitted,
        auto_submit_reason=request.auto_submit_reason,
        answers=[
            SubmissionAnswer(
                question_index=a.question_index,
                selected_option=a.selected_option,
                is_correct=a.is_correct,
            )
            for a in grade.answers
        ],
    )
    _save_submission(db, submission)
    log.info(
        "Quiz %s submitted by %s: %d/%d (%s)",
        exam.exam_code, request.usn, grade.score, grade.total_questions, request.auto_submit_reason,
    )

    return {
        "success": True,
        "data": {
            "score": grade.score,
            "totalQuestions": grade.total_questions,
            "percentage": grading.format_percentage(grade.percentage),
            "timeTaken": time_taken,
        },
        "message": "Quiz submitted successfully",
    }


@router.post("/submit-video", status_code=201)
def submit_video(request: VideoSubmission, db: Session = Depends(get_db)):
    """Store the watch-time record; completion is recomputed from the two reported numbers."""
    exam = _get_exam_for_submission(db, request.exam_id, ExamType.VIDEO)
    _ensure_not_submitted(db, exam.id, request.usn)

    received_at = _now()
    try:
        grading.check_started_at(request.started_at, received_at)
        grading.check_watch_time(request.watch_time, request.started_at, received_at)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    completion = grading.completion_percentage(request.watch_time, request.total_video_duration)
    time_taken = grading.minutes_between(request.started_at, received_at)
    _save_submission(db, ExamSubmission(
        exam_id=exam.id,
        student_name=request.student_name,
        usn=request.usn,
        exam_type=ExamType.VIDEO.value,
        watch_time=request.watch_time,
        total_video_duration=request.total_video_duration,
        completion_percentage=completion,
        time_taken=time_taken,
        started_at=request.started_at,
        submitted_at=received_at,
    ))
    log.info("Video %s submitted by %s: %.2f%% watched", exam.exam_code, request.usn, completion)

    return {
        "success": True,
        "data": {
            "watchTime": request.watch_time,
            "totalVideoDuration": request.total_video_duration,
            "completionPercentage": grading.format_percentage(completion),
            "timeTaken": time_taken,
        },
        "message": "Video watch data submitted successfully",
    }


# ─── Routes: progress checkpoints ──────────────────────────────────────────────

@router.put("/{exam_id}/progress/{usn}")
def save_progress(
    exam_id: int,
    usn: str,
    request: ProgressSave,
    db: Session = Depends(get_db),
    store: ProgressStore = Depends(get_progress_store),
):
    """Checkpoint resumable state (video watch progress or quiz draft answers)."""
    exam = db.query(Exam).filter(Exam.id == exam_id).first()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    usn = usn.strip().upper()
    _ensure_not_submitted(db, exam_id, usn)

    envelope = store.set(_progress_namespace(exam), exam_id, usn, request.payload, _progress_ttl_seconds(exam))
    return {"success": True, "data": envelope}


@router.get("/{exam_id}/progress/{usn}")
def get_progress(
    exam_id: int,
    usn: str,
    db: Session = Depends(get_db),
    store: ProgressStore = Depends(get_progress_store),
):
    exam = db.query(Exam).filter(Exam.id == exam_id).first()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    envelope = store.get(_progress_namespace(exam), exam_id, usn.strip().upper())
    return {"success": True, "data": envelope}


@router.delete("/{exam_id}/progress/{usn}")
def clear_progress(
    exam_id: int,
    usn: str,
    db: Session = Depends(get_db),
    store: ProgressStore = Depends(get_progress_store),
):
    exam = db.query(Exam).filter(Exam.id == exam_id).first()
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    store.delete(_progress_namespace(exam), exam_id, usn.strip().upper())
    return {"success": True, "message": "Progress cleared"}
