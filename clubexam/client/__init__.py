"""
Exam Client Package

Student- and admin-side flows that talk to the exam API:
1. api:         httpx wrapper, error envelopes → exceptions
2. guards:      context menu / clipboard / shortcut blocking, integrity reports
3. quiz:        timed quiz session, auto-submit exactly once
4. video:       watch-time tracking, 80% unlock, 24h resume
5. scoreboard:  CSV export and live polling
"""

from .api import ExamApiClient, ExamApiError, NetworkError
from .guards import IntegrityGuard, KeyEvent, classify_key
from .quiz import QuizSession, SessionState, format_clock
from .video import VideoSession, PlayerState, extract_youtube_id
from .scoreboard import LiveScoreboard, scoreboard_to_csv, export_filename

__all__ = [
    "ExamApiClient",
    "ExamApiError",
    "NetworkError",
    "IntegrityGuard",
    "KeyEvent",
    "classify_key",
    "QuizSession",
    "SessionState",
    "format_clock",
    "VideoSession",
    "PlayerState",
    "extract_youtube_id",
    "LiveScoreboard",
    "scoreboard_to_csv",
    "export_filename",
]
