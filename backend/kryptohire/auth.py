import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.hash import pbkdf2_sha256
from sqlalchemy.orm import Session

from .db import get_db
from .errors import AuthenticationError
from .models import AuthSession, User
from .settings import DEFAULT_JWT_SECRET, Settings, get_settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
bearer_scheme = HTTPBearer(
    auto_error=False,
    scheme_name="BearerAuth",
    bearerFormat="JWT",
    description="JWT access token obtained from /auth/login",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    return pbkdf2_sha256.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pbkdf2_sha256.verify(password, password_hash)


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _secret(settings: Settings) -> str:
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("JWT_SECRET is using the default value. Set JWT_SECRET in production.")
    return settings.jwt_secret


def encode_token(user_id: str, session_id: str, token_type: str, expires_at: datetime,
                 settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    payload = {
        "sub": user_id,
        "sid": session_id,
        "type": token_type,
        "exp": int(expires_at.timestamp()),
        "iat": int(utcnow().timestamp()),
        # keeps tokens issued within the same second distinct
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(payload, _secret(settings), algorithm=ALGORITHM)


def decode_token(token: str, expected_type: str, settings: Optional[Settings] = None) -> dict:
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, _secret(settings), algorithms=[ALGORITHM])
    except jwt.ExpiredSignatureError as exc:
        raise AuthenticationError("Token expired. Please log in again.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthenticationError("Invalid authentication token.") from exc
    if payload.get("type") != expected_type:
        raise AuthenticationError("Invalid authentication token.")
    return payload


def issue_tokens(db: Session, user: User, session: Optional[AuthSession] = None) -> Tuple[dict, AuthSession]:
    """Create (or rotate) a session and return the token bundle for it."""
    settings = get_settings()
    now = utcnow()
    access_expires = now + timedelta(minutes=settings.access_token_ttl_minutes)
    refresh_expires = now + timedelta(days=settings.refresh_token_ttl_days)

    if session is None:
        session = AuthSession(user_id=user.id, refresh_token_hash="", expires_at=refresh_expires)
        db.add(session)
        db.flush()

    access_token = encode_token(user.id, session.id, "access", access_expires, settings)
    refresh_token = encode_token(user.id, session.id, "refresh", refresh_expires, settings)
    session.refresh_token_hash = _hash_token(refresh_token)
    session.expires_at = refresh_expires
    db.commit()

    bundle = {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "expires_at": int(access_expires.timestamp()),
        "expires_in": settings.access_token_ttl_minutes * 60,
    }
    return bundle, session


def authenticate(db: Session, email: str, password: str) -> User:
    user = db.query(User).filter(User.email == normalize_email(email)).first()
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    return user


def _active_session(db: Session, session_id: Optional[str]) -> AuthSession:
    session = db.get(AuthSession, session_id) if session_id else None
    if not session or session.revoked_at is not None:
        raise AuthenticationError("Session is no longer valid. Please log in again.")
    if as_utc(session.expires_at) < utcnow():
        raise AuthenticationError("Session expired. Please log in again.")
    return session


def refresh_session(db: Session, refresh_token: str) -> Tuple[dict, User]:
    payload = decode_token(refresh_token, "refresh")
    session = _active_session(db, payload.get("sid"))
    if session.refresh_token_hash != _hash_token(refresh_token):
        # an already-rotated refresh token was replayed
        session.revoked_at = utcnow()
        db.commit()
        raise AuthenticationError("Refresh token has already been used.")
    user = db.get(User, session.user_id)
    if not user:
        raise AuthenticationError("Account not found.")
    bundle, _ = issue_tokens(db, user, session)
    return bundle, user


def revoke_session(db: Session, session_id: str) -> None:
    session = db.get(AuthSession, session_id)
    if session and session.revoked_at is None:
        session.revoked_at = utcnow()
        db.commit()


class CurrentUser:
    """Authenticated caller: the user row plus the session the token belongs to."""

    def __init__(self, user: User, session_id: str):
        self.user = user
        self.session_id = session_id

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    payload = decode_token(credentials.credentials, "access")
    session = _active_session(db, payload.get("sid"))
    user = db.get(User, payload.get("sub"))
    if not user or user.id != session.user_id:
        raise AuthenticationError("Account not found. Please log in again.")
    return CurrentUser(user, session.id)
