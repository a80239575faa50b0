"""Admin authentication endpoints and utilities."""
import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Request, Response
from pydantic import BaseModel

from app.core.config import settings
from app.core.errors import ForbiddenError, UnauthorizedError

router = APIRouter()
logger = logging.getLogger(__name__)

SESSION_COOKIE = "admin_session"

# In-memory admin session storage (use Redis in production)
_sessions: dict[str, dict] = {}


class LoginRequest(BaseModel):
    """Login request model."""
    password: str


class SessionInfo(BaseModel):
    """Session information response."""
    authenticated: bool
    expires_at: Optional[str] = None


def create_session_token() -> str:
    """Generate a secure session token."""
    return secrets.token_urlsafe(32)


def hash_password(password: str) -> str:
    """Hash password for comparison."""
    return hashlib.sha256(password.encode()).hexdigest()


def check_password(candidate: str, expected: str) -> bool:
    """Constant-time password comparison."""
    return hmac.compare_digest(hash_password(candidate), hash_password(expected))


def prune_expired_sessions() -> int:
    """Drop expired sessions from the store."""
    now = datetime.utcnow()
    expired = [token for token, session in _sessions.items() if now > session["expires_at"]]
    for token in expired:
        del _sessions[token]
    return len(expired)


def create_session(response: Response) -> str:
    """Create a new admin session and set cookie."""
    prune_expired_sessions()
    session_token = create_session_token()
    lifetime = timedelta(hours=settings.admin_session_hours)
    expires_at = datetime.utcnow() + lifetime

    _sessions[session_token] = {
        "authenticated": True,
        "expires_at": expires_at,
        "created_at": datetime.utcnow(),
    }

    # Set HTTP-only cookie
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_token,
        httponly=True,
        max_age=int(lifetime.total_seconds()),
        samesite="lax",
    )

    return session_token


def get_session_token(request: Request) -> Optional[str]:
    """Extract session token from cookie."""
    return request.cookies.get(SESSION_COOKIE)


def verify_session(session_token: Optional[str]) -> bool:
    """Verify if session token is valid and not expired."""
    if not session_token:
        return False

    session = _sessions.get(session_token)
    if not session:
        return False

    # Check expiration
    if datetime.utcnow() > session["expires_at"]:
        del _sessions[session_token]
        return False

    return session.get("authenticated", False)


async def require_admin(request: Request) -> str:
    """Dependency requiring an authenticated admin session."""
    session_token = get_session_token(request)
    if not verify_session(session_token):
        raise UnauthorizedError("Authentication required")
    return session_token


@router.post("/api/auth/login")
async def login(login_req: LoginRequest, response: Response):
    """Login endpoint."""
    if not settings.admin_password:
        logger.warning("[AUTH] Login attempted but no admin password is configured")
        raise ForbiddenError("Admin access is not configured")

    if not check_password(login_req.password, settings.admin_password):
        logger.info("[AUTH] Rejected admin login")
        raise UnauthorizedError("Invalid password")

    session_token = create_session(response)
    logger.info("[AUTH] Admin logged in")

    return {
        "success": True,
        "message": "Login successful",
        "expires_at": _sessions[session_token]["expires_at"].isoformat(),
    }


@router.post("/api/auth/logout")
async def logout(request: Request, response: Response):
    """Logout endpoint."""
    session_token = get_session_token(request)
    if session_token and session_token in _sessions:
        del _sessions[session_token]

    # Clear cookie
    response.delete_cookie(SESSION_COOKIE)

    return {"success": True, "message": "Logged out"}


@router.get("/api/auth/session")
async def get_session_info(request: Request) -> SessionInfo:
    """Get current session information."""
    session_token = get_session_token(request)

    if verify_session(session_token):
        session = _sessions[session_token]
        return SessionInfo(
            authenticated=True,
            expires_at=session["expires_at"].isoformat(),
        )

    return SessionInfo(authenticated=False)
