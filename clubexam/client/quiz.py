"""
Quiz session state machine.

Walks one student through N questions inside a fixed time limit and
produces exactly one submission. The caller drives time by calling tick()
once per second and forwards UI events (tab hidden, key presses, ...).
The server computes the score; this class never knows the correct options.
"""

import enum
import logging
import random
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from clubexam.client.api import ExamApiClient, ExamApiError, NetworkError
from clubexam.client.guards import IntegrityGuard

log = logging.getLogger(__name__)

OPTIONS = ("A", "B", "C", "D")


class SessionState(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    ALREADY_SUBMITTED = "already_submitted"
    CANCELLED = "cancelled"


def format_clock(seconds: float) -> str:
    """123 -> '2:03'"""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _log_notify(message: str, level: str) -> None:
    log.info("[%s] %s", level, message)


class QuizSession:
    def __init__(
        self,
        api: ExamApiClient,
        exam: dict,
        student_name: str,
        usn: str,
        notify: Callable[[str, str], None] = _log_notify,
        confirm: Optional[Callable[[str], bool]] = None,
        shuffle: bool = False,
        rng: Optional[random.Random] = None,
        tab_switch_limit: Optional[int] = None,
        checkpoint: bool = False,
        report_events: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if exam.get("examType") != "quiz":
            raise ValueError("QuizSession needs a quiz exam")
        if not exam.get("questions"):
            raise ValueError("Exam has no questions")

        self.api = api
        self.exam = exam
        self.exam_id = exam["id"]
        self.student_name = student_name.strip()
        self.usn = usn.strip().upper()
        self.notify = notify
        self.confirm = confirm
        self.tab_switch_limit = tab_switch_limit
        self.checkpoint = checkpoint
        self.clock = clock

        self.questions: List[dict] = list(exam["questions"])
        # display position -> index in the exam's original order
        self.order = list(range(len(self.questions)))
        if shuffle:
            (rng or random.Random()).shuffle(self.order)

        self.current_index = 0
        self.answers: Dict[int, str] = {}  # keyed by original question index
        self.remaining_seconds = int(exam["duration"]) * 60
        self.started_at: Optional[datetime] = None
        self.state = SessionState.NOT_STARTED
        self.auto_submit_triggered = False
        self.auto_submit_reason: Optional[str] = None
        self.tab_switches = 0
        self.result: Optional[dict] = None
        self.last_error: Optional[str] = None

        report = self._report_event if report_events else None
        self.guard = IntegrityGuard(notify, report=report)

    # ─── lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> bool:
        """Refuse to start if this USN already submitted; otherwise begin the countdown."""
        try:
            if self.api.has_submitted(self.exam_id, self.usn):
                self.state = SessionState.ALREADY_SUBMITTED
                self.notify("You have already submitted this exam", "error")
                return False
        except (ExamApiError, NetworkError) as e:
            # the server still rejects duplicates at submit time
            log.warning("Submission pre-check failed, continuing: %s", e)

        if self.checkpoint:
            self._restore_draft()

        self.started_at = self.clock()
        self.state = SessionState.IN_PROGRESS
        return True

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    @property
    def unanswered_count(self) -> int:
        return self.total_questions - self.answered_count

    @property
    def answers_locked(self) -> bool:
        """Answers are frozen once time is up or an automatic submit has started."""
        return self.remaining_seconds <= 0 or self.auto_submit_triggered

    @property
    def remaining_label(self) -> str:
        return format_clock(self.remaining_seconds)

    @property
    def progress(self) -> float:
        return (self.current_index + 1) / self.total_questions * 100

    # ─── navigation & answers ──────────────────────────────────────────────────

    @property
    def current_question(self) -> dict:
        return self.questions[self.order[self.current_index]]

    @property
    def current_answer(self) -> Optional[str]:
        return self.answers.get(self.order[self.current_index])

    def select(self, option: str) -> None:
        """Record (or overwrite) the answer for the current question."""
        if self.state != SessionState.IN_PROGRESS or self.answers_locked:
            return
        option = (option or "").upper()
        if option not in OPTIONS:
            raise ValueError(f"Option must be one of {', '.join(OPTIONS)}")
        self.answers[self.order[self.current_index]] = option
        if self.checkpoint:
            self._save_draft()

    def next(self) -> None:
        if self.current_index < self.total_questions - 1:
            self.current_index += 1

    def previous(self) -> None:
        if self.current_index > 0:
            self.current_index -= 1

    def go_to(self, index: int) -> None:
        if 0 <= index < self.total_questions:
            self.current_index = index

    # ─── time & integrity events ───────────────────────────────────────────────

    def tick(self) -> None:
        """One second passed. At zero the quiz is submitted automatically, once."""
        if self.state != SessionState.IN_PROGRESS or self.remaining_seconds <= 0:
            return
        self.remaining_seconds -= 1
        if self.remaining_seconds == 0 and not self.auto_submit_triggered:
            self.auto_submit_triggered = True
            self.notify("Time is up. Submitting your answers.", "warning")
            self._submit("timeout")

    def on_tab_hidden(self) -> None:
        if self.state != SessionState.IN_PROGRESS:
            return
        self.tab_switches += 1
        self.guard.on_tab_hidden()
        if self.tab_switch_limit is not None and self.tab_switches > self.tab_switch_limit and not self.auto_submit_triggered:
            self.auto_submit_triggered = True
            self.notify("Tab switch limit exceeded. Submitting your answers.", "error")
            self._submit("tab_change")

    def on_window_blur(self) -> None:
        if self.state == SessionState.IN_PROGRESS:
            self.guard.on_window_blur()

    # ─── submission ────────────────────────────────────────────────────────────

    def payload_answers(self) -> List[Optional[str]]:
        """One entry per question in the exam's original order; None when unanswered."""
        return [self.answers.get(i) for i in range(self.total_questions)]

    def submit(self) -> Optional[dict]:
        """
        Manual submit, or the retry of a failed automatic one.

        A retry keeps the automatic reason and skips the prompt. Otherwise,
        with unanswered questions and time left, asks confirm(); without a
        confirm callback the student only gets a warning toast.
        """
        if self.state != SessionState.IN_PROGRESS:
            return None
        if self.auto_submit_triggered:
            return self._submit(self.auto_submit_reason)

        unanswered = self.unanswered_count
        if unanswered > 0 and self.remaining_seconds > 0:
            message = f"You have {unanswered} unanswered questions. Submit anyway?"
            if self.confirm is None:
                self.notify(f"Submitting with {unanswered} unanswered questions", "warning")
            elif not self.confirm(message):
                return None
        return self._submit("manual")

    def _submit(self, reason: str) -> Optional[dict]:
        if self.state != SessionState.IN_PROGRESS:
            return None
        self.state = SessionState.SUBMITTING
        self.auto_submit_reason = reason
        try:
            result = self.api.submit_quiz(
                self.exam_id,
                self.student_name,
                self.usn,
                self.payload_answers(),
                self.started_at or self.clock(),
                auto_submit_reason=reason,
            )
        except ExamApiError as e:
            return self._submit_failed(e.message)
        except NetworkError as e:
            return self._submit_failed(str(e))

        self.state = SessionState.SUBMITTED
        self.result = result
        self.last_error = None
        self.notify(f"Quiz submitted! Score: {result['score']}/{result['totalQuestions']}", "success")
        if self.checkpoint:
            self._clear_draft()
        return result

    def _submit_failed(self, message: str) -> None:
        # back to in_progress so the student can press submit again
        self.state = SessionState.IN_PROGRESS
        self.last_error = message
        self.notify(message or "Failed to submit quiz", "error")
        return None

    # ─── best-effort side channels ─────────────────────────────────────────────

    def _report_event(self, event_type: str, details: str) -> None:
        self.api.report_event(self.exam_id, self.usn, event_type, details)

    def _save_draft(self) -> None:
        try:
            self.api.save_progress(self.exam_id, self.usn, {
                "answers": {str(k): v for k, v in self.answers.items()},
            })
        except (ExamApiError, NetworkError) as e:
            log.warning("Could not checkpoint quiz draft: %s", e)

    def _restore_draft(self) -> None:
        try:
            envelope = self.api.load_progress(self.exam_id, self.usn)
        except (ExamApiError, NetworkError) as e:
            log.warning("Could not load quiz draft: %s", e)
            return
        if not envelope:
            return
        saved = envelope.get("payload", {}).get("answers", {})
        for key, option in saved.items():
            idx = int(key)
            if 0 <= idx < self.total_questions and option in OPTIONS:
                self.answers[idx] = option

    def _clear_draft(self) -> None:
        try:
            self.api.clear_progress(self.exam_id, self.usn)
        except (ExamApiError, NetworkError) as e:
            log.warning("Could not clear quiz draft: %s", e)
