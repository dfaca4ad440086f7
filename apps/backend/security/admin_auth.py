"""
Session authentication for protected endpoints.

Sessions are HMAC-signed tokens issued by the user-facing auth service,
which shares SESSION_SECRET with this backend. The token is accepted from
an "Authorization: Bearer" header or from the session cookie.
"""
import os
import hmac
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import HTTPException, Request

COOKIE_NAME = "dypse_session"
SESSION_DURATION_HOURS = 8
ADMIN_ROLE = "ADMIN"


@dataclass
class SessionUser:
    user_id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def get_session_secret() -> str:
    """Get SESSION_SECRET from environment."""
    secret = os.getenv("SESSION_SECRET")
    if not secret:
        raise ValueError("SESSION_SECRET environment variable required")
    return secret


def _sign(message: str, secret: str) -> str:
    return hmac.new(
        secret.encode(),
        message.encode(),
        hashlib.sha256
    ).hexdigest()


def create_session_token(user_id: str, role: str, secret: str,
                         duration_hours: float = SESSION_DURATION_HOURS) -> str:
    """
    Create HMAC-signed session token.
    Format: user_id|role|expiry_timestamp|signature
    """
    expiry = datetime.now(timezone.utc) + timedelta(hours=duration_hours)
    message = f"{user_id}|{role}|{int(expiry.timestamp())}"
    return f"{message}|{_sign(message, secret)}"


def verify_session_token(token: str, secret: str) -> Optional[SessionUser]:
    """
    Verify HMAC-signed session token.
    Returns the session user if valid, None otherwise.
    """
    try:
        parts = token.split("|")
        if len(parts) != 4:
            return None

        user_id, role, expiry_ts_str, signature = parts
        expiry_ts = int(expiry_ts_str)

        if datetime.now(timezone.utc).timestamp() > expiry_ts:
            return None

        expected_signature = _sign(f"{user_id}|{role}|{expiry_ts_str}", secret)
        if not hmac.compare_digest(signature, expected_signature):
            return None

        return SessionUser(user_id=user_id, role=role)
    except (ValueError, IndexError):
        return None


def _extract_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip() or None
    return request.cookies.get(COOKIE_NAME)


def get_session_user(request: Request) -> Optional[SessionUser]:
    """
    Get the authenticated user from the request.
    Returns None if not authenticated.
    """
    token = _extract_token(request)
    if not token:
        return None

    try:
        secret = get_session_secret()
    except ValueError:
        return None

    return verify_session_token(token, secret)


def current_user(request: Request) -> SessionUser:
    """
    FastAPI dependency that requires a valid session.
    Raises 401 HTTPException if not authenticated.
    """
    user = get_session_user(request)
    if not user:
        raise HTTPException(
            status_code=401,
            detail="Authentication required"
        )
    return user


def admin_required(request: Request) -> SessionUser:
    """
    FastAPI dependency that requires an ADMIN session.
    Raises 401 if not authenticated, 403 for any other role.
    """
    user = current_user(request)
    if not user.is_admin:
        raise HTTPException(
            status_code=403,
            detail="Admin access required"
        )
    return user
