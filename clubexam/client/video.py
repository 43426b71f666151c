"""
Video session: tracks how long an embedded video has actually been watched
and unlocks submission once 80% of it has been seen.

Watch time only accrues while the player reports PLAYING and the page is
visible and focused. Progress is checkpointed every few seconds so a reload
within 24 hours resumes instead of restarting; the checkpoint is a
convenience, the submitted watch time is what the server records.
"""

import enum
import logging
import re
from datetime import datetime, timedelta
from typing import Callable, Optional

from clubexam.client.api import ExamApiClient, ExamApiError, NetworkError
from clubexam.client.guards import IntegrityGuard
from clubexam.client.quiz import SessionState, _log_notify, _utcnow

log = logging.getLogger(__name__)

COMPLETION_THRESHOLD = 80.0
SAVE_INTERVAL_SECONDS = 5
RESUME_WINDOW = timedelta(hours=24)

YOUTUBE_URL = re.compile(r"^.*(youtu\.be/|v/|u/\w/|embed/|watch\?v=|&v=)([^#&?]*).*")


class PlayerState(str, enum.Enum):
    UNSTARTED = "unstarted"
    PLAYING = "playing"
    PAUSED = "paused"
    BUFFERING = "buffering"
    CUED = "cued"
    ENDED = "ended"


def extract_youtube_id(url: str) -> Optional[str]:
    """11-character video id from the usual YouTube URL shapes, else None."""
    match = YOUTUBE_URL.match(url or "")
    if match and len(match.group(2)) == 11:
        return match.group(2)
    return None


class VideoSession:
    def __init__(
        self,
        api: ExamApiClient,
        exam: dict,
        student_name: str,
        usn: str,
        notify: Callable[[str, str], None] = _log_notify,
        confirm: Optional[Callable[[str], bool]] = None,
        report_events: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if exam.get("examType") != "video":
            raise ValueError("VideoSession needs a video exam")

        self.api = api
        self.exam = exam
        self.exam_id = exam["id"]
        self.student_name = student_name.strip()
        self.usn = usn.strip().upper()
        self.notify = notify
        self.confirm = confirm
        self.clock = clock

        self.video_id = extract_youtube_id(exam.get("videoLink") or "")
        self.error: Optional[str] = None
        if self.video_id is None:
            self.error = "Invalid YouTube video link. Please contact administrator."

        self.watch_time = 0
        self.video_duration = 0.0
        self.can_submit = False
        self.playing = False
        self.paused = False
        self.pause_reason = ""
        self.started_at: Optional[datetime] = None
        self.resumed = False
        self.state = SessionState.NOT_STARTED
        self.result: Optional[dict] = None
        self._since_save = 0

        report = self._report_event if report_events else None
        self.guard = IntegrityGuard(notify, report=report)

    # ─── lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> bool:
        if self.error:
            self.notify(self.error, "error")
            return False
        try:
            if self.api.has_submitted(self.exam_id, self.usn):
                self.state = SessionState.ALREADY_SUBMITTED
                self.notify("You have already submitted this exam", "error")
                return False
        except (ExamApiError, NetworkError) as e:
            log.warning("Submission pre-check failed, continuing: %s", e)

        self._restore_progress()
        if self.started_at is None:
            self.started_at = self.clock()
        self.state = SessionState.IN_PROGRESS

        if self.resumed:
            self.notify(f"Resuming exam - {self.completion:.1f}% completed", "info")
        return True

    def cancel(self) -> None:
        self._clear_progress()
        self.playing = False
        self.state = SessionState.CANCELLED

    @property
    def completion(self) -> float:
        if self.video_duration <= 0:
            return 0.0
        return min(self.watch_time / self.video_duration, 1.0) * 100

    @property
    def leave_warning(self) -> Optional[str]:
        """Text for a before-unload prompt while the exam is running."""
        if self.state in (SessionState.IN_PROGRESS, SessionState.SUBMITTING):
            return "Video exam is in progress. Your watch time will be saved, but you will need to start over."
        return None

    # ─── player events ─────────────────────────────────────────────────────────

    def set_duration(self, duration: float) -> None:
        if duration and duration > 0:
            self.video_duration = float(duration)
            self._update_can_submit()
        else:
            self.error = "Unable to get video duration."

    def on_player_state(self, state: PlayerState) -> None:
        state = PlayerState(state)
        if state == PlayerState.PLAYING:
            self.playing = True
            self.paused = False
            self.pause_reason = ""
        elif state == PlayerState.ENDED:
            self.playing = False
            if not self.can_submit:
                self.can_submit = True
                self.notify("Video completed! You can now submit.", "success")
        else:
            self.playing = False

    def tick(self, reported_duration: Optional[float] = None) -> None:
        """One second passed. Accrues watch time only while actually playing."""
        if self.state != SessionState.IN_PROGRESS:
            return
        if reported_duration and reported_duration != self.video_duration:
            self.video_duration = float(reported_duration)
            self._update_can_submit()

        if self.playing and not self.paused:
            self.watch_time += 1
            self._update_can_submit()

        if self.video_duration > 0:
            self._since_save += 1
            if self._since_save >= SAVE_INTERVAL_SECONDS:
                self._since_save = 0
                self._save_progress()

    def _update_can_submit(self) -> None:
        if self.video_duration > 0 and self.completion >= COMPLETION_THRESHOLD:
            self.can_submit = True

    # ─── page visibility ───────────────────────────────────────────────────────

    def on_visibility_change(self, hidden: bool) -> bool:
        """Returns True when the UI must pause the player."""
        if self.state != SessionState.IN_PROGRESS:
            return False
        if hidden:
            self.guard.record("tab_hidden")
            if self.playing:
                self._pause("Tab/App switched", "Video paused - Tab changed. Return to resume.")
                return True
        elif self.paused:
            # overlay clears; playback resumes only when the student presses play
            self.paused = False
        return False

    def on_window_blur(self) -> bool:
        if self.state != SessionState.IN_PROGRESS:
            return False
        self.guard.record("window_blur")
        if self.playing:
            self._pause("App/Window switched", "Video paused - Please return to continue.")
            return True
        return False

    def on_window_focus(self) -> None:
        if self.paused:
            self.paused = False

    def _pause(self, reason: str, message: str) -> None:
        self.playing = False
        self.paused = True
        self.pause_reason = reason
        self.notify(message, "warning")

    # ─── submission ────────────────────────────────────────────────────────────

    def submit(self) -> Optional[dict]:
        if self.state != SessionState.IN_PROGRESS:
            return None
        if not self.can_submit:
            self.notify(
                f"Please watch at least {COMPLETION_THRESHOLD:.0f}% of the video. Current: {self.completion:.1f}%",
                "warning",
            )
            return None
        if self.confirm is not None and not self.confirm(
            "Are you sure you want to submit? Your watch time will be recorded."
        ):
            return None

        self.state = SessionState.SUBMITTING
        try:
            result = self.api.submit_video(
                self.exam_id,
                self.student_name,
                self.usn,
                self.watch_time,
                self.video_duration,
                self.started_at or self.clock(),
            )
        except ExamApiError as e:
            return self._submit_failed(self._describe_api_error(e))
        except NetworkError as e:
            return self._submit_failed(f"Failed to submit video exam. {e}")

        self.state = SessionState.SUBMITTED
        self.playing = False
        self.result = result
        self._clear_progress()
        self.notify(f"Video exam submitted! Completion: {result['completionPercentage']}%", "success")
        return result

    @staticmethod
    def _describe_api_error(e: ExamApiError) -> str:
        if e.status_code == 400:
            detail = e.message or "Invalid submission data."
        elif e.status_code == 404:
            detail = "Exam not found."
        elif e.status_code >= 500:
            detail = "Server error. Please try again."
        else:
            detail = e.message or "Unknown error occurred."
        return f"Failed to submit video exam. {detail}"

    def _submit_failed(self, message: str) -> None:
        self.state = SessionState.IN_PROGRESS
        self.notify(message, "error")
        return None

    # ─── checkpoints ───────────────────────────────────────────────────────────

    def _report_event(self, event_type: str, details: str) -> None:
        self.api.report_event(self.exam_id, self.usn, event_type, details)

    def _save_progress(self) -> None:
        try:
            self.api.save_progress(self.exam_id, self.usn, {
                "studentName": self.student_name,
                "watchTime": self.watch_time,
                "videoDuration": self.video_duration,
                "canSubmit": self.can_submit,
                "startTime": (self.started_at or self.clock()).isoformat(),
            })
        except (ExamApiError, NetworkError) as e:
            log.warning("Could not checkpoint video progress: %s", e)

    def _restore_progress(self) -> None:
        try:
            envelope = self.api.load_progress(self.exam_id, self.usn)
        except (ExamApiError, NetworkError) as e:
            log.warning("Could not load video progress: %s", e)
            return
        if not envelope:
            return

        try:
            saved_at = datetime.fromisoformat(envelope["saved_at"])
            payload = envelope["payload"]
            if self.clock() - saved_at >= RESUME_WINDOW:
                return
            self.watch_time = int(payload.get("watchTime", 0))
            self.video_duration = float(payload.get("videoDuration", 0))
            self.can_submit = bool(payload.get("canSubmit", False))
            if payload.get("startTime"):
                self.started_at = datetime.fromisoformat(payload["startTime"])
        except (KeyError, TypeError, ValueError) as e:
            log.warning("Ignoring unreadable video progress: %s", e)
            return
        self.resumed = True

    def _clear_progress(self) -> None:
        try:
            self.api.clear_progress(self.exam_id, self.usn)
        except (ExamApiError, NetworkError) as e:
            log.warning("Could not clear video progress: %s", e)
