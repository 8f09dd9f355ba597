import secrets

from app.core.config import settings

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: str) -> str | None:
    """Return the token from an 'Authorization: Bearer <token>' value, or None."""
    if not authorization.startswith(BEARER_PREFIX):
        return None
    return authorization[len(BEARER_PREFIX):]


def verify_auth_token(token: str) -> bool:
    return secrets.compare_digest(token.encode(), settings.auth_token.encode())
