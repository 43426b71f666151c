"""
Scoreboard aggregation.
Joins an exam's submissions into ranked rows at read time.
"""

from collections import Counter
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from clubexam.database.models import Exam, ExamSubmission, IntegrityEvent
from clubexam.services.grading import format_percentage, percentage


def _iso(dt):
    return dt.isoformat() if dt else None


def _quiz_row(sub: ExamSubmission) -> dict:
    pct = percentage(sub.score, sub.total_questions)
    return {
        "studentName": sub.student_name,
        "usn": sub.usn,
        "score": sub.score,
        "totalQuestions": sub.total_questions,
        "percentage": format_percentage(pct),
        "timeTaken": sub.time_taken,
        "submittedAt": _iso(sub.submitted_at),
        "autoSubmitted": sub.auto_submitted,
        "autoSubmitReason": sub.auto_submit_reason,
        "_sort": pct,
    }


def _video_row(sub: ExamSubmission) -> dict:
    return {
        "studentName": sub.student_name,
        "usn": sub.usn,
        "watchTime": sub.watch_time,
        "totalVideoDuration": sub.total_video_duration,
        "completionPercentage": format_percentage(sub.completion_percentage),
        "timeTaken": sub.time_taken,
        "submittedAt": _iso(sub.submitted_at),
        "autoSubmitted": sub.auto_submitted,
        "autoSubmitReason": sub.auto_submit_reason,
        "_sort": sub.completion_percentage,
    }


def rank_rows(rows: List[dict]) -> List[dict]:
    """
    Sort by the hidden _sort key, highest first, and number the rows.
    sorted() is stable, so ties keep the order they were read in.
    """
    ranked = sorted(rows, key=lambda r: r["_sort"], reverse=True)
    for idx, row in enumerate(ranked):
        row.pop("_sort", None)
        row["rank"] = idx + 1
    return ranked


def integrity_counts(db: Session, exam_id: int) -> Dict[str, int]:
    rows = (
        db.query(IntegrityEvent.usn, func.count(IntegrityEvent.id))
        .filter(IntegrityEvent.exam_id == exam_id)
        .group_by(IntegrityEvent.usn)
        .all()
    )
    return Counter({usn: count for usn, count in rows})


def build_scoreboard(db: Session, exam: Exam) -> dict:
    """Ranked, read-only view of every submission for one exam."""
    submissions = (
        db.query(ExamSubmission)
        .filter(ExamSubmission.exam_id == exam.id)
        .order_by(ExamSubmission.submitted_at.desc(), ExamSubmission.id.desc())
        .all()
    )

    make_row = _quiz_row if exam.exam_type == "quiz" else _video_row
    rows = [make_row(s) for s in submissions]

    events = integrity_counts(db, exam.id)
    for row in rows:
        row["integrityEvents"] = events[row["usn"]]

    return {
        "examId": exam.id,
        "examName": exam.exam_name,
        "examCode": exam.exam_code,
        "examType": exam.exam_type,
        "totalSubmissions": len(rows),
        "data": rank_rows(rows),
    }
