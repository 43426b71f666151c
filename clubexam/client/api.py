"""
HTTP client for the exam API.
Wraps httpx and turns error envelopes into ExamApiError / NetworkError.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"


class ExamApiError(Exception):
    """The server answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []


class NetworkError(Exception):
    """The request never got an answer (connection refused, timeout, ...)."""


class ExamApiClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: Optional[str] = None,
        timeout: float = 15.0,
        http: Optional[httpx.Client] = None,
    ):
        self.http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token = token

    # ─── plumbing ──────────────────────────────────────────────────────────────

    def _request(self, method: str, path: str, json: Optional[dict] = None, admin: bool = False) -> dict:
        headers = {}
        if admin and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        try:
            response = self.http.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as e:
            log.warning("%s %s failed: %s", method, path, e)
            raise NetworkError("Network error. Please check your internet connection.") from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            errors = body.get("errors") if isinstance(body, dict) else None
            raise ExamApiError(response.status_code, message or f"Request failed ({response.status_code})", errors)
        return body

    def close(self) -> None:
        self.http.close()

    # ─── admin ─────────────────────────────────────────────────────────────────

    def login(self, email: str, password: str) -> str:
        body = self._request("POST", "/auth/admin/login", json={"email": email, "password": password})
        self.token = body["data"]["accessToken"]
        return self.token

    def get_scoreboard(self, exam_id: int) -> dict:
        return self._request("GET", f"/exams/{exam_id}/scoreboard", admin=True)

    # ─── student ───────────────────────────────────────────────────────────────

    def get_exam_by_code(self, exam_code: str) -> dict:
        return self._request("GET", f"/exams/code/{exam_code}")["data"]

    def has_submitted(self, exam_id: int, usn: str) -> bool:
        return bool(self._request("GET", f"/exams/{exam_id}/check-submission/{usn}").get("hasSubmitted"))

    def submit_quiz(
        self,
        exam_id: int,
        student_name: str,
        usn: str,
        answers: List[Optional[str]],
        started_at: datetime,
        auto_submit_reason: str = "manual",
    ) -> dict:
        payload = {
            "examId": exam_id,
            "studentName": student_name,
            "usn": usn,
            "answers": [{"selectedOption": a} for a in answers],
            "startedAt": started_at.isoformat(),
            "submittedAt": datetime.now(started_at.tzinfo).isoformat(),
            "autoSubmitted": auto_submit_reason != "manual",
            "autoSubmitReason": auto_submit_reason,
        }
        return self._request("POST", "/exams/submit-quiz", json=payload)["data"]

    def submit_video(
        self,
        exam_id: int,
        student_name: str,
        usn: str,
        watch_time: float,
        total_video_duration: float,
        started_at: datetime,
    ) -> dict:
        payload = {
            "examId": exam_id,
            "studentName": student_name,
            "usn": usn,
            "watchTime": watch_time,
            "totalVideoDuration": total_video_duration,
            "startedAt": started_at.isoformat(),
            "submittedAt": datetime.now(started_at.tzinfo).isoformat(),
        }
        return self._request("POST", "/exams/submit-video", json=payload)["data"]

    def report_event(self, exam_id: int, usn: str, event_type: str, details: str = "") -> None:
        self._request(
            "POST",
            f"/exams/{exam_id}/integrity-events",
            json={"usn": usn, "eventType": event_type, "details": details},
        )

    # ─── progress checkpoints ──────────────────────────────────────────────────

    def save_progress(self, exam_id: int, usn: str, payload: Dict[str, Any]) -> dict:
        return self._request("PUT", f"/exams/{exam_id}/progress/{usn}", json={"payload": payload})["data"]

    def load_progress(self, exam_id: int, usn: str) -> Optional[dict]:
        return self._request("GET", f"/exams/{exam_id}/progress/{usn}")["data"]

    def clear_progress(self, exam_id: int, usn: str) -> None:
        self._request("DELETE", f"/exams/{exam_id}/progress/{usn}")
