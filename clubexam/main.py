"""
Club Exam API — Main Application
Exam definitions, server-graded submissions, progress checkpoints and the
live scoreboard.
"""

from dotenv import load_dotenv
load_dotenv()

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from clubexam.auth.security import hash_password
from clubexam.config import CORS_ORIGINS, DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD
from clubexam.database.database import engine, Base, SessionLocal
from clubexam.database.models import Admin
from clubexam.errors import register_exception_handlers
from clubexam.routers import auth_admin, exams, exam_student, scoreboard, integrity

logging.basicConfig(level=logging.INFO, format="%(asctime)s  %(levelname)s  %(message)s")
log = logging.getLogger(__name__)


def _seed_defaults():
    """Create the default admin if there is none."""
    db = SessionLocal()
    try:
        if db.query(Admin).count() == 0:
            db.add(Admin(
                email=DEFAULT_ADMIN_EMAIL.lower(),
                hashed_password=hash_password(DEFAULT_ADMIN_PASSWORD),
                full_name="Admin",
                is_active=True,
            ))
            db.commit()
            log.info("Default admin created: %s", DEFAULT_ADMIN_EMAIL)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: create tables + seed defaults."""
    Base.metadata.create_all(bind=engine)
    _seed_defaults()
    yield


app = FastAPI(
    title="Club Exam API",
    description="Quiz and video exams with server-side grading and a live scoreboard",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ─── Routers ───────────────────────────────────────────────────────────────────

app.include_router(auth_admin.router)         # /auth/admin/login
app.include_router(exam_student.router)       # /exams/code/*, /exams/submit-*, /exams/*/progress/*
app.include_router(scoreboard.router)         # /exams/*/scoreboard
app.include_router(integrity.router)          # /exams/*/integrity-events
app.include_router(exams.router)              # /exams (admin CRUD)


@app.get("/")
def root():
    return {
        "name": "Club Exam API",
        "version": "1.0.0",
        "endpoints": {
            "docs": "/docs",
            "auth": "/auth/admin",
            "exams": "/exams",
        },
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "service": "club-exam-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
