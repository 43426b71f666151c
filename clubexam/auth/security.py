"""
Admin authentication utilities.
bcrypt password hashes + short-lived HS256 JWT access tokens carrying the
admin id (`sub`) and a role claim.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt as _bcrypt
from jose import JWTError, jwt

from clubexam.config import JWT_SECRET_KEY, ACCESS_TOKEN_EXPIRE_MINUTES

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"


@dataclass
class TokenClaims:
    admin_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


# ─── Password helpers ─────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return _bcrypt.hashpw(password.encode("utf-8"), _bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return _bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


# ─── Token helpers ─────────────────────────────────────────────────────────────

def create_access_token(admin_id: int, role: str = ADMIN_ROLE, expires_delta: Optional[timedelta] = None) -> str:
    """Signed token for one admin; expires after ACCESS_TOKEN_EXPIRE_MINUTES unless told otherwise."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    claims = {"sub": str(admin_id), "role": role, "exp": expire}
    return jwt.encode(claims, JWT_SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> Optional[TokenClaims]:
    """None when the token is invalid, expired, or has no usable subject."""
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[ALGORITHM])
        return TokenClaims(admin_id=int(payload["sub"]), role=str(payload.get("role", "")))
    except (JWTError, KeyError, ValueError, TypeError):
        return None
