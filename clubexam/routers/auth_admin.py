"""
Admin authentication router.
Login issues a bearer token; get_current_admin gates the admin-only exam routes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from clubexam.auth.security import verify_password, create_access_token, decode_token
from clubexam.database.database import get_db
from clubexam.database.models import Admin
from clubexam.database.schemas import AdminLoginRequest

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/admin", tags=["auth-admin"])

security_scheme = HTTPBearer(auto_error=False)


# ─── Dependencies ──────────────────────────────────────────────────────────────

def get_current_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security_scheme),
    db: Session = Depends(get_db),
) -> Admin:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")

    claims = decode_token(credentials.credentials)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    if not claims.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    admin = db.query(Admin).filter(Admin.id == claims.admin_id).first()
    if not admin or not admin.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found or inactive")
    return admin


# ─── Routes ────────────────────────────────────────────────────────────────────

@router.post("/login")
def login(request: AdminLoginRequest, db: Session = Depends(get_db)):
    admin = db.query(Admin).filter(Admin.email == request.email.strip().lower()).first()
    if not admin or not verify_password(request.password, admin.hashed_password):
        log.info("Failed admin login for %s", request.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    if not admin.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    token = create_access_token(admin.id)
    return {
        "success": True,
        "data": {
            "accessToken": token,
            "tokenType": "bearer",
            "admin": {"id": admin.id, "email": admin.email, "fullName": admin.full_name},
        },
    }
