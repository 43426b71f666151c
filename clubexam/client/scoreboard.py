"""
Admin-side scoreboard helpers: CSV export and a polling loop that keeps a
scoreboard fresh while the admin has "live" turned on.
"""

import csv
import io
import logging
import time
from typing import Callable, Optional

from clubexam.client.api import ExamApiClient, ExamApiError, NetworkError
from clubexam.client.quiz import format_clock

log = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 5

QUIZ_HEADERS = [
    "USN", "Name", "Score", "Total Questions", "Percentage",
    "Time Taken (mins)", "Submitted At", "Status", "Auto-Submit Reason",
]
VIDEO_HEADERS = [
    "USN", "Name", "Watch Time", "Total Duration", "Completion %",
    "Time Spent (mins)", "Submitted At", "Status", "Auto-Submit Reason",
]


def _status(row: dict) -> str:
    return "AUTO-SUBMITTED" if row.get("autoSubmitted") else "MANUAL"


def _reason(row: dict) -> str:
    return row.get("autoSubmitReason") or "N/A"


def scoreboard_to_csv(board: dict) -> str:
    """Render a scoreboard response (as returned by the API) to CSV text."""
    out = io.StringIO()
    writer = csv.writer(out, lineterminator="\n")

    if board["examType"] == "video":
        writer.writerow(VIDEO_HEADERS)
        for row in board["data"]:
            writer.writerow([
                row["usn"],
                row["studentName"],
                format_clock(row["watchTime"]),
                format_clock(row["totalVideoDuration"]),
                f"{row['completionPercentage']}%",
                row["timeTaken"],
                row["submittedAt"],
                _status(row),
                _reason(row),
            ])
    else:
        writer.writerow(QUIZ_HEADERS)
        for row in board["data"]:
            writer.writerow([
                row["usn"],
                row["studentName"],
                row["score"],
                row["totalQuestions"],
                f"{row['percentage']}%",
                row["timeTaken"],
                row["submittedAt"],
                _status(row),
                _reason(row),
            ])
    return out.getvalue()


def export_filename(board: dict) -> str:
    return f"{board['examCode']}_scoreboard.csv"


class LiveScoreboard:
    """
    Re-fetches the scoreboard every few seconds while `live` is on.

    on_update(board) is called with each successful fetch. A failed fetch is
    logged and the previous board stays in place until the next poll.
    """

    def __init__(
        self,
        api: ExamApiClient,
        exam_id: int,
        on_update: Optional[Callable[[dict], None]] = None,
        interval: float = POLL_INTERVAL_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.api = api
        self.exam_id = exam_id
        self.on_update = on_update
        self.interval = interval
        self.sleep = sleep
        self.live = True
        self.board: Optional[dict] = None
        self.last_error: Optional[str] = None

    def toggle(self) -> bool:
        self.live = not self.live
        return self.live

    def poll_once(self) -> Optional[dict]:
        try:
            board = self.api.get_scoreboard(self.exam_id)
        except (ExamApiError, NetworkError) as e:
            self.last_error = str(e)
            log.warning("Scoreboard refresh failed for exam %s: %s", self.exam_id, e)
            return self.board

        self.board = board
        self.last_error = None
        if self.on_update is not None:
            self.on_update(board)
        return board

    def run(self, should_stop: Callable[[], bool]) -> None:
        """Fetch once, then keep polling while live until should_stop() says so."""
        self.poll_once()
        while not should_stop():
            self.sleep(self.interval)
            if should_stop():
                break
            if self.live:
                self.poll_once()

    def to_csv(self) -> str:
        if self.board is None:
            raise ValueError("No scoreboard loaded yet")
        return scoreboard_to_csv(self.board)
