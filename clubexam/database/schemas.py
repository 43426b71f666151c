"""
Pydantic schemas for request validation.
Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

OptionLabel = Literal["A", "B", "C", "D"]
IntegrityEventType = Literal[
    "tab_hidden",
    "window_blur",
    "context_menu",
    "copy",
    "cut",
    "screenshot_key",
    "devtools_key",
    "shortcut_key",
]


class CamelModel(BaseModel):
    """Accepts both camelCase (wire) and snake_case (Python) keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _clean_upper(value: str) -> str:
    value = (value or "").strip().upper()
    if not value:
        raise ValueError("must not be blank")
    return value


# ==========================================
# EXAM DEFINITION SCHEMAS
# ==========================================

class ExamCreate(CamelModel):
    """Schema for creating a quiz or video exam. Questions are added separately."""
    exam_name: str = Field(..., min_length=1, max_length=255)
    exam_code: str = Field(..., min_length=1, max_length=50)
    exam_type: Literal["quiz", "video"]
    duration: int = Field(..., ge=1, le=600, description="Duration in minutes")
    video_link: Optional[str] = Field(None, max_length=500)

    @field_validator("exam_name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("exam_code")
    @classmethod
    def _normalize_code(cls, v: str) -> str:
        return _clean_upper(v)

    @model_validator(mode="after")
    def _video_needs_link(self):
        if self.exam_type == "video" and not (self.video_link or "").strip():
            raise ValueError("videoLink is required for video exams")
        if self.exam_type == "quiz":
            self.video_link = None
        return self


class QuestionIn(CamelModel):
    """One MCQ question with four options."""
    question: str = Field(..., min_length=1)
    option_a: str = Field(..., min_length=1)
    option_b: str = Field(..., min_length=1)
    option_c: str = Field(..., min_length=1)
    option_d: str = Field(..., min_length=1)
    correct_option: OptionLabel


class QuestionsPayload(CamelModel):
    questions: List[QuestionIn] = Field(..., min_length=1)


# ==========================================
# SUBMISSION SCHEMAS
# ==========================================

class AnswerIn(CamelModel):
    """Any correctness flag sent by a client is ignored."""
    selected_option: Optional[OptionLabel] = None


class SubmissionBase(CamelModel):
    exam_id: int = Field(..., gt=0)
    student_name: str = Field(..., min_length=1, max_length=255)
    usn: str = Field(..., min_length=1, max_length=50)
    started_at: datetime
    submitted_at: Optional[datetime] = Field(None, description="Ignored; the server records receipt time")

    @field_validator("student_name")
    @classmethod
    def _strip_student_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("usn")
    @classmethod
    def _normalize_usn(cls, v: str) -> str:
        return _clean_upper(v)


class QuizSubmission(SubmissionBase):
    answers: List[AnswerIn]
    auto_submitted: bool = False
    auto_submit_reason: Literal["timeout", "tab_change", "manual"] = "manual"

    @model_validator(mode="after")
    def _reason_matches_flag(self):
        if self.auto_submit_reason != "manual":
            self.auto_submitted = True
        elif self.auto_submitted:
            raise ValueError("autoSubmitReason must be 'timeout' or 'tab_change' when autoSubmitted is true")
        return self


class VideoSubmission(SubmissionBase):
    watch_time: float = Field(..., ge=0, description="Seconds actually watched")
    total_video_duration: float = Field(..., gt=0, description="Video length in seconds")


# ==========================================
# PROGRESS / INTEGRITY / AUTH
# ==========================================

class ProgressSave(CamelModel):
    payload: Dict[str, Any]


class IntegrityEventIn(CamelModel):
    usn: str = Field(..., min_length=1, max_length=50)
    event_type: IntegrityEventType
    details: str = Field("", max_length=1000)

    @field_validator("usn")
    @classmethod
    def _normalize_usn(cls, v: str) -> str:
        return _clean_upper(v)


class AdminLoginRequest(BaseModel):
    email: str
    password: str
