from typing import Any, Dict, Optional, Sequence
import jwt
import structlog

logger = structlog.get_logger()

BEARER_PREFIX = "Bearer "


class AuthenticationError(Exception):
    """Raised when a request carries no usable bearer token."""

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


def verify_bearer_token(
    authorization: Optional[str],
    secret: str,
    algorithms: Sequence[str]
) -> Dict[str, Any]:
    """Verify the HMAC-signed JWT in an Authorization header value and return its claims."""
    if not authorization:
        raise AuthenticationError("Authorization header required")

    if not authorization.startswith(BEARER_PREFIX):
        raise AuthenticationError("Could not find bearer token in Authorization header")
    token = authorization[len(BEARER_PREFIX):]

    try:
        return jwt.decode(token, secret, algorithms=list(algorithms))
    except jwt.PyJWTError as e:
        logger.warning("Token verification failed", error=str(e))
        raise AuthenticationError("Invalid token")
