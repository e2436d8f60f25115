import logging
import secrets

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import STAFF_API_TOKENS

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def parse_staff_tokens(raw: str) -> dict[str, str]:
    """Parse "token:actor,token2:actor2" into {token: actor}"""
    tokens = {}
    for pair in (raw or "").split(","):
        pair = pair.strip()
        if not pair or ":" not in pair:
            continue
        token, actor = pair.split(":", 1)
        if token.strip() and actor.strip():
            tokens[token.strip()] = actor.strip()
    return tokens


_staff_tokens = parse_staff_tokens(STAFF_API_TOKENS)


def resolve_actor(token: str, tokens: dict[str, str]) -> str | None:
    """Constant-time lookup of the actor behind a bearer token"""
    actor = None
    for known, name in tokens.items():
        if secrets.compare_digest(known.encode(), token.encode()):
            actor = name
    return actor


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str:
    """
    Resolve the staff actor id for the request.

    Session management lives in the external auth provider; this service only
    needs a stable actor identity to stamp on checklist writes and reviews.
    """
    if not credentials or not credentials.credentials:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated. Please provide a valid Bearer token in the Authorization header.",
        )

    actor = resolve_actor(credentials.credentials, _staff_tokens)
    if not actor:
        logger.warning("Rejected request with unknown staff token")
        raise HTTPException(status_code=401, detail="Invalid authentication token")

    return actor
