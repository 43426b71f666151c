import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# must be set before clubexam.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from clubexam.auth.security import create_access_token, hash_password  # noqa: E402
from clubexam.database.database import Base, get_db  # noqa: E402
from clubexam.database.models import Admin  # noqa: E402
from clubexam.database.redis_client import ProgressStore, get_progress_store  # noqa: E402
from clubexam.main import app  # noqa: E402


class FakeRedis:
    """Just the slice of redis.Redis that ProgressStore uses."""

    def __init__(self):
        self.data = {}
        self.ttls = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value, ex=None):
        self.data[key] = value
        self.ttls[key] = ex
        return True

    def delete(self, key):
        self.ttls.pop(key, None)
        return 1 if self.data.pop(key, None) is not None else 0


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(session_factory, fake_redis):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_progress_store] = lambda: ProgressStore(fake_redis)
    # no `with`: the lifespan would create tables on the configured engine
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin(db):
    admin = Admin(
        email="admin@club.org",
        hashed_password=hash_password("secret"),
        full_name="Admin",
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


@pytest.fixture
def admin_headers(admin):
    token = create_access_token(admin.id)
    return {"Authorization": f"Bearer {token}"}


# ─── helpers ───────────────────────────────────────────────────────────────────

def minutes_ago(minutes: float) -> str:
    return (datetime.now(timezone.utc) - timedelta(minutes=minutes)).isoformat()


def make_question(text: str, correct: str) -> dict:
    return {
        "question": text,
        "optionA": "first",
        "optionB": "second",
        "optionC": "third",
        "optionD": "fourth",
        "correctOption": correct,
    }


def create_quiz(client, headers, code="QUIZ1", correct=("A", "C"), duration=1) -> dict:
    resp = client.post(
        "/exams",
        json={"examName": "Weekly Quiz", "examCode": code, "examType": "quiz", "duration": duration},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    exam = resp.json()["data"]
    questions = [make_question(f"Q{i + 1}", c) for i, c in enumerate(correct)]
    resp = client.post(f"/exams/{exam['id']}/questions", json={"questions": questions}, headers=headers)
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def create_video(client, headers, code="VID1", link="https://www.youtube.com/watch?v=dQw4w9WgXcQ") -> dict:
    resp = client.post(
        "/exams",
        json={"examName": "Intro Talk", "examCode": code, "examType": "video", "duration": 30, "videoLink": link},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def submit_quiz(client, exam_id, usn, answers, name="Student", started=2, **extra):
    body = {
        "examId": exam_id,
        "studentName": name,
        "usn": usn,
        "answers": [{"selectedOption": a} for a in answers],
        "startedAt": minutes_ago(started),
    }
    body.update(extra)
    return client.post("/exams/submit-quiz", json=body)


def submit_video(client, exam_id, usn, watch_time, duration=100, name="Student", started=5):
    return client.post("/exams/submit-video", json={
        "examId": exam_id,
        "studentName": name,
        "usn": usn,
        "watchTime": watch_time,
        "totalVideoDuration": duration,
        "startedAt": minutes_ago(started),
    })
