"""Signed tokens: the application access token and the OAuth ``state`` token.

Both are HS256 JWTs signed with ``JWT_SECRET``.  A ``typ`` claim keeps one
kind from being accepted in place of the other.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from src.errors import AuthenticationError
from src.utils.config import Settings, settings

ALGORITHM = "HS256"
ACCESS_TYPE = "access"
STATE_TYPE = "state"


@dataclass(frozen=True)
class AuthToken:
    user_id: str
    email: str
    name: str
    email_verified: bool
    issued_at: datetime
    expires_at: datetime

    def to_user(self) -> Dict[str, Any]:
        return {
            "id": self.user_id,
            "email": self.email,
            "name": self.name,
            "emailVerified": self.email_verified,
        }


def issue_token(user: Dict[str, Any], cfg: Settings = settings, now: Optional[datetime] = None) -> str:
    """Mint an access token for *user* (keys: id, email, name, emailVerified)."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "typ": ACCESS_TYPE,
        "sub": user["id"],
        "userId": user["id"],
        "email": user.get("email", ""),
        "name": user.get("name", ""),
        "emailVerified": bool(user.get("emailVerified", False)),
        "iss": cfg.jwt_issuer,
        "iat": issued,
        "exp": issued + timedelta(hours=cfg.jwt_expires_hours),
    }
    return jwt.encode(payload, cfg.jwt_secret, algorithm=ALGORITHM)


def verify_token(token: str, cfg: Settings = settings) -> AuthToken:
    """Decode an access token; raises ``AuthenticationError`` if invalid or expired."""
    claims = _decode(token, cfg, ACCESS_TYPE, "Invalid or expired token")
    return AuthToken(
        user_id=claims["userId"],
        email=claims.get("email", ""),
        name=claims.get("name", ""),
        email_verified=bool(claims.get("emailVerified", False)),
        issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
        expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
    )


def issue_state(return_to: str, cfg: Settings = settings) -> str:
    """Short-lived state for the login redirect: a nonce plus where to go afterwards."""
    issued = datetime.now(timezone.utc)
    payload = {
        "typ": STATE_TYPE,
        "nonce": str(uuid.uuid4()),
        "returnTo": return_to,
        "iat": issued,
        "exp": issued + timedelta(minutes=cfg.state_token_minutes),
    }
    return jwt.encode(payload, cfg.jwt_secret, algorithm=ALGORITHM)


def verify_state(state: Optional[str], cfg: Settings = settings) -> Dict[str, Any]:
    if not state:
        raise AuthenticationError("Missing state parameter")
    return _decode(state, cfg, STATE_TYPE, "Authentication state expired, please try again")


def _decode(token: str, cfg: Settings, expected_type: str, error: str) -> Dict[str, Any]:
    try:
        claims = jwt.decode(
            token,
            cfg.jwt_secret,
            algorithms=[ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.PyJWTError as exc:
        raise AuthenticationError(error) from exc
    if claims.get("typ") != expected_type:
        raise AuthenticationError(error)
    if expected_type == ACCESS_TYPE and (
        claims.get("iss") != cfg.jwt_issuer or "userId" not in claims
    ):
        raise AuthenticationError(error)
    return claims
