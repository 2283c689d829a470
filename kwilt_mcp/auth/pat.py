"""Personal access token verification.

Tokens are minted elsewhere; this module only hashes the presented bearer
secret and matches it against stored hashes.
"""

import hashlib
import re
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session as DBSession

from kwilt_mcp.core.exceptions import AuthenticationError, ServiceUnavailableError
from kwilt_mcp.core.logging import get_logger, request_context
from kwilt_mcp.core.time import utcnow
from kwilt_mcp.db.models import PersonalAccessToken

logger = get_logger(__name__)

_BEARER_RE = re.compile(r"^Bearer\s+(.+)$", re.IGNORECASE)


@dataclass(frozen=True)
class PatOwner:
    """Identity resolved from a valid PAT."""
    owner_id: str
    pat_id: str


def hash_token(token: str) -> str:
    """SHA-256 hex digest of a PAT secret."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def get_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` value."""
    header = (authorization or "").strip()
    if not header:
        return None
    match = _BEARER_RE.match(header)
    if not match:
        return None
    token = match.group(1).strip()
    return token or None


def _touch_last_used(db: DBSession, pat: PersonalAccessToken) -> None:
    """Best-effort last_used_at bump; never fails the request."""
    try:
        pat.last_used_at = utcnow()
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "Failed to update PAT last_used_at",
            data={"pat_id": pat.id, "error": str(exc)},
        )


def authenticate_pat(db: DBSession, token: Optional[str]) -> PatOwner:
    """Resolve a bearer token to its owner.

    Raises:
        AuthenticationError: token missing, unknown, or revoked.
        ServiceUnavailableError: the token store could not be queried.
    """
    if not token:
        raise AuthenticationError("Missing Authorization")

    try:
        pat = (
            db.query(PersonalAccessToken)
            .filter(PersonalAccessToken.token_hash == hash_token(token))
            .first()
        )
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("PAT lookup failed", data={"error": str(exc)})
        raise ServiceUnavailableError("Auth unavailable") from exc

    if pat is None:
        raise AuthenticationError("Unauthorized")
    if pat.revoked_at is not None:
        raise AuthenticationError("Token revoked")

    owner = PatOwner(owner_id=str(pat.owner_id), pat_id=str(pat.id))
    _touch_last_used(db, pat)
    return owner


def require_pat_owner(request: Request, db: DBSession) -> PatOwner:
    """Authenticate the request and tag the logging context with the owner."""
    owner = authenticate_pat(db, get_bearer_token(request.headers.get("authorization")))
    ctx = request_context.get()
    if ctx:
        ctx["owner_id"] = owner.owner_id
    return owner
