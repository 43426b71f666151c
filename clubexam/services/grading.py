"""
Server-side grading for quiz and video submissions.

Scores, correctness flags and completion percentages are computed here from
stored exam data; nothing a client reports about correctness is trusted.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from clubexam.config import CLOCK_SKEW_SECONDS, WATCH_TIME_GRACE_SECONDS


@dataclass
class GradedAnswer:
    question_index: int
    selected_option: Optional[str]
    is_correct: bool


@dataclass
class QuizGrade:
    score: int
    total_questions: int
    answers: List[GradedAnswer] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return percentage(self.score, self.total_questions)


def aware(dt: datetime) -> datetime:
    """SQLite hands back naive datetimes; treat them as UTC."""
    return dt.replace(tzinfo=timezone.utc) if dt.tzinfo is None else dt


def percentage(score: int, total: int) -> float:
    if total <= 0:
        return 0.0
    return score / total * 100


def format_percentage(value: float) -> str:
    """Two decimals, e.g. 50 -> '50.00'."""
    return f"{value:.2f}"


def completion_percentage(watch_time: float, total_video_duration: float) -> float:
    """min(watch_time / duration, 1) * 100, rounded to two decimals."""
    if total_video_duration <= 0:
        return 0.0
    return round(min(watch_time / total_video_duration, 1.0) * 100, 2)


def minutes_between(started_at: datetime, submitted_at: datetime) -> int:
    """Whole minutes, halves rounded up."""
    seconds = (aware(submitted_at) - aware(started_at)).total_seconds()
    return max(0, int(math.floor(seconds / 60 + 0.5)))


def grade_quiz(correct_options: Sequence[str], selected_options: Sequence[Optional[str]]) -> QuizGrade:
    """
    Grade answers positionally against the exam's correct options.

    selected_options must hold one entry per question (None when unanswered).
    """
    if len(selected_options) != len(correct_options):
        raise ValueError(
            f"Expected {len(correct_options)} answers, got {len(selected_options)}"
        )

    graded = []
    score = 0
    for idx, (correct, selected) in enumerate(zip(correct_options, selected_options)):
        is_correct = bool(selected) and selected == correct
        if is_correct:
            score += 1
        graded.append(GradedAnswer(question_index=idx, selected_option=selected or None, is_correct=is_correct))

    return QuizGrade(score=score, total_questions=len(correct_options), answers=graded)


def check_started_at(started_at: datetime, received_at: datetime) -> None:
    """Reject start times in the future (beyond allowed clock skew)."""
    if (aware(started_at) - aware(received_at)).total_seconds() > CLOCK_SKEW_SECONDS:
        raise ValueError("startedAt is in the future")


def check_watch_time(watch_time: float, started_at: datetime, received_at: datetime) -> None:
    """Reported watch time cannot exceed the wall-clock time since the exam started."""
    elapsed = (aware(received_at) - aware(started_at)).total_seconds()
    if watch_time > max(elapsed, 0) + WATCH_TIME_GRACE_SECONDS:
        raise ValueError(
            f"watchTime of {watch_time:.0f}s exceeds the {max(elapsed, 0):.0f}s elapsed since the exam started"
        )
