"""
Redis-backed progress checkpoints.
Holds resumable exam state (video watch progress, quiz draft answers) as
versioned, namespaced envelopes with an explicit expiry. The data here is a
convenience cache; submissions never read from it.
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import redis

from clubexam.config import REDIS_URL

log = logging.getLogger(__name__)

PROGRESS_VERSION = 1
KEY_PREFIX = "clubexam"

NAMESPACE_VIDEO = "video_progress"
NAMESPACE_QUIZ = "quiz_draft"

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Get or create Redis connection."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(REDIS_URL, decode_responses=True)
    return _redis_client


# ─── Key helpers ───────────────────────────────────────────────────────────────

def progress_key(namespace: str, exam_id: int, usn: str) -> str:
    return f"{KEY_PREFIX}:v{PROGRESS_VERSION}:{namespace}:{exam_id}:{usn.upper()}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─── Store ─────────────────────────────────────────────────────────────────────

class ProgressStore:
    """get / set / expire / delete over envelopes stored as JSON strings."""

    def __init__(self, client: redis.Redis, clock: Callable[[], datetime] = _utcnow):
        self.client = client
        self.clock = clock

    def set(self, namespace: str, exam_id: int, usn: str, payload: Dict[str, Any], ttl_seconds: int) -> dict:
        now = self.clock()
        key = progress_key(namespace, exam_id, usn)
        envelope = {
            "version": PROGRESS_VERSION,
            "namespace": namespace,
            "key": key,
            "saved_at": now.isoformat(),
            "expires_at": (now + timedelta(seconds=ttl_seconds)).isoformat(),
            "payload": payload,
        }
        self.client.set(key, json.dumps(envelope), ex=ttl_seconds)
        return envelope

    def get(self, namespace: str, exam_id: int, usn: str) -> Optional[dict]:
        key = progress_key(namespace, exam_id, usn)
        raw = self.client.get(key)
        if not raw:
            return None

        try:
            envelope = json.loads(raw)
            expires_at = datetime.fromisoformat(envelope["expires_at"])
        except (ValueError, KeyError, TypeError):
            log.warning("Discarding unreadable progress entry %s", key)
            self.client.delete(key)
            return None

        if envelope.get("version") != PROGRESS_VERSION or envelope.get("namespace") != namespace:
            self.client.delete(key)
            return None
        if expires_at <= self.clock():
            self.client.delete(key)
            return None
        return envelope

    def expire(self, namespace: str, exam_id: int, usn: str, ttl_seconds: int) -> bool:
        """Shorten or extend the lifetime of an entry. Returns False if it does not exist."""
        envelope = self.get(namespace, exam_id, usn)
        if envelope is None:
            return False
        envelope["expires_at"] = (self.clock() + timedelta(seconds=ttl_seconds)).isoformat()
        self.client.set(envelope["key"], json.dumps(envelope), ex=ttl_seconds)
        return True

    def delete(self, namespace: str, exam_id: int, usn: str) -> None:
        self.client.delete(progress_key(namespace, exam_id, usn))


def get_progress_store() -> ProgressStore:
    """FastAPI dependency."""
    return ProgressStore(get_redis())
