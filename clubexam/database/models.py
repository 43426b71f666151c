"""
SQLAlchemy models for the exam flow.
Admin → Exam → ExamQuestion, and one ExamSubmission per (exam, USN).
"""

import enum

from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, Float, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from clubexam.database.database import Base


class ExamType(str, enum.Enum):
    QUIZ = "quiz"
    VIDEO = "video"


class AutoSubmitReason(str, enum.Enum):
    TIMEOUT = "timeout"
    TAB_CHANGE = "tab_change"
    MANUAL = "manual"


# ==========================================
# AUTH: ADMINS
# ==========================================

class Admin(Base):
    """Club administrator. Creates exams and reads scoreboards."""
    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Admin(id={self.id}, email='{self.email}')>"


# ==========================================
# EXAM DEFINITIONS
# ==========================================

class Exam(Base):
    """
    A gradeable unit students join by code.
    exam_type: 'quiz' = ordered MCQ questions, 'video' = one tracked video.
    """
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    exam_name = Column(String(255), nullable=False)
    exam_code = Column(String(50), unique=True, nullable=False, index=True)  # stored upper-case
    exam_type = Column(String(10), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    video_link = Column(String(500), nullable=True)  # video exams only
    created_by = Column(Integer, ForeignKey("admins.id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    creator = relationship("Admin", foreign_keys=[created_by])
    questions = relationship(
        "ExamQuestion",
        back_populates="exam",
        cascade="all, delete-orphan",
        order_by="ExamQuestion.question_order",
    )
    submissions = relationship("ExamSubmission", back_populates="exam", cascade="all, delete-orphan")
    integrity_events = relationship("IntegrityEvent", back_populates="exam", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Exam(id={self.id}, code='{self.exam_code}', type='{self.exam_type}')>"


class ExamQuestion(Base):
    """One MCQ question of a quiz. question_order is 0-based and dense."""
    __tablename__ = "exam_questions"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    question_order = Column(Integer, nullable=False)
    question = Column(Text, nullable=False)
    option_a = Column(Text, nullable=False)
    option_b = Column(Text, nullable=False)
    option_c = Column(Text, nullable=False)
    option_d = Column(Text, nullable=False)
    correct_option = Column(String(1), nullable=False)  # "A", "B", "C", "D"

    exam = relationship("Exam", back_populates="questions")

    def __repr__(self):
        return f"<ExamQuestion(exam_id={self.exam_id}, order={self.question_order})>"


# ==========================================
# SUBMISSIONS
# ==========================================

class ExamSubmission(Base):
    """
    The single submission of one student (USN) for one exam.
    Quiz fields and video fields are both present; the unused ones stay at 0.
    """
    __tablename__ = "exam_submissions"
    __table_args__ = (UniqueConstraint("exam_id", "usn", name="uix_submission_exam_usn"),)

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    student_name = Column(String(255), nullable=False)
    usn = Column(String(50), nullable=False, index=True)  # stored upper-case
    exam_type = Column(String(10), nullable=False)

    # quiz
    score = Column(Integer, default=0, nullable=False)
    total_questions = Column(Integer, default=0, nullable=False)

    # video (seconds)
    watch_time = Column(Float, default=0, nullable=False)
    total_video_duration = Column(Float, default=0, nullable=False)
    completion_percentage = Column(Float, default=0, nullable=False)

    time_taken = Column(Integer, nullable=False)  # minutes
    started_at = Column(DateTime(timezone=True), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    auto_submitted = Column(Boolean, default=False, nullable=False)
    auto_submit_reason = Column(String(20), default=AutoSubmitReason.MANUAL.value, nullable=False)

    exam = relationship("Exam", back_populates="submissions")
    answers = relationship(
        "SubmissionAnswer",
        back_populates="submission",
        cascade="all, delete-orphan",
        order_by="SubmissionAnswer.question_index",
    )

    def __repr__(self):
        return f"<ExamSubmission(exam_id={self.exam_id}, usn='{self.usn}', score={self.score})>"


class SubmissionAnswer(Base):
    """Graded answer for one quiz question. selected_option is null when unanswered."""
    __tablename__ = "submission_answers"

    id = Column(Integer, primary_key=True, index=True)
    submission_id = Column(Integer, ForeignKey("exam_submissions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_index = Column(Integer, nullable=False)
    selected_option = Column(String(1), nullable=True)
    is_correct = Column(Boolean, nullable=False)

    submission = relationship("ExamSubmission", back_populates="answers")

    def __repr__(self):
        return f"<SubmissionAnswer(submission_id={self.submission_id}, q={self.question_index}, ans='{self.selected_option}')>"


# ==========================================
# INTEGRITY EVENTS
# ==========================================

class IntegrityEvent(Base):
    """Client-reported guard event (tab hidden, copy attempt, ...). Informational only."""
    __tablename__ = "integrity_events"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), nullable=False, index=True)
    usn = Column(String(50), nullable=False, index=True)
    event_type = Column(String(50), nullable=False, index=True)  # tab_hidden, copy, screenshot_key, ...
    details = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    exam = relationship("Exam", back_populates="integrity_events")

    def __repr__(self):
        return f"<IntegrityEvent(id={self.id}, exam_id={self.exam_id}, type='{self.event_type}')>"
