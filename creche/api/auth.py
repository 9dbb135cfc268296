"""
JWT authentication for FastAPI.

Supports three modes:
1. Token mode: Verifies RS256 JWTs against the issuer's JWKS (when AUTH_ISSUER is set)
2. Demo mode: Token mode configured but no token provided, returns the demo user
3. Single-user mode: Falls back to user_id=1 for local development
"""

import os
from typing import Optional

import jwt
from jwt import PyJWKClient
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from creche.core.constants import STAFF_ROLES, UserRole
from creche.db.connection import get_db_session
from creche.db.models import User
from creche.db.repositories import ChildRepository


# Auth configuration from environment
AUTH_ISSUER = os.getenv("AUTH_ISSUER")  # e.g., https://<project>.supabase.co/auth/v1
AUTH_JWKS_URL = os.getenv("AUTH_JWKS_URL") or (f"{AUTH_ISSUER}/.well-known/jwks.json" if AUTH_ISSUER else None)

# Demo user convention: auth_subject="demo"
DEMO_SUBJECT = "demo"

# Security scheme - optional so it doesn't fail when no auth is configured
security = HTTPBearer(auto_error=False)

_jwks_client: Optional[PyJWKClient] = None


def _get_jwks_client() -> Optional[PyJWKClient]:
    """Get or create cached JWKS client."""
    global _jwks_client
    if _jwks_client is None and AUTH_JWKS_URL:
        _jwks_client = PyJWKClient(AUTH_JWKS_URL)
    return _jwks_client


def _verify_token(token: str) -> dict:
    """
    Verify a bearer token and return the decoded payload.

    Raises:
        HTTPException: If token is invalid or expired
    """
    jwks_client = _get_jwks_client()
    if not jwks_client:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="JWKS not configured",
        )

    try:
        signing_key = jwks_client.get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256", "ES256"],
            issuer=AUTH_ISSUER,
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
        )


def _get_or_create_user(db: Session, subject: str, email: Optional[str] = None) -> User:
    """
    Get existing user by auth subject or create a parent account.

    Staff roles are granted by an admin, never by signing in.
    """
    user = db.query(User).filter_by(auth_subject=subject).first()
    if user:
        return user

    user = User(
        full_name=email or f"user_{subject[:8]}",
        email=email,
        auth_subject=subject,
        role=UserRole.PARENT.value,
    )
    db.add(user)
    db.flush()
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db_session),
) -> User:
    """
    FastAPI dependency that returns the current authenticated user.

    In token mode (AUTH_ISSUER set):
        - Verifies JWT from Authorization header
        - Returns the user mapped to the token subject (auto-created on first sign-in)

    In single-user mode (no AUTH_ISSUER):
        - Returns user with id=1
    """
    if not AUTH_ISSUER:
        user = db.query(User).filter_by(id=1).first()
        if not user:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Default user (id=1) not found. Run database initialization first.",
            )
        return user

    if not credentials:
        demo_user = db.query(User).filter_by(auth_subject=DEMO_SUBJECT).first()
        if demo_user:
            return demo_user
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = _verify_token(credentials.credentials)
    subject = payload.get("sub")
    if not subject:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing subject",
        )

    return _get_or_create_user(db, subject, payload.get("email"))


async def require_staff(user: User = Depends(get_current_user)) -> User:
    """Dependency for staff-only endpoints."""
    if user.role not in STAFF_ROLES:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff access required",
        )
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Dependency for admin-only endpoints (billing, expenses, payroll)."""
    if user.role != UserRole.ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def is_staff(user: User) -> bool:
    return user.role in STAFF_ROLES


def is_demo_user(user: User) -> bool:
    """Check if the given user is the demo user."""
    return user.auth_subject == DEMO_SUBJECT


def ensure_child_access(db: Session, user: User, child_id: int):
    """
    Raise 403 unless the user is staff or a parent of the child.

    Raises:
        HTTPException: 403 when the user has no link to the child
    """
    if is_staff(user):
        return
    if not ChildRepository(db).is_parent_of(user.id, child_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this child",
        )
