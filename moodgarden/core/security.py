from datetime import datetime
from datetime import timedelta
from datetime import UTC

import jwt
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.security import HTTPBearer


bearer_scheme = HTTPBearer(auto_error=False)

SESSION_ALGORITHM = "HS256"


def extract_bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str:
    """Extract and validate a Bearer token from authorization credentials.

    Raises:
        HTTPException: If credentials are missing, malformed, or empty.
    """

    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Authorization Bearer token is required",
        )

    if credentials.scheme.lower() != "bearer" or not credentials.credentials.strip():
        raise HTTPException(
            status_code=401,
            detail="Authorization Bearer token is required",
        )

    return credentials.credentials.strip()


def issue_session_token(
    user_id: int,
    username: str,
    secret: str,
    valid_days: int = 7,
    now: datetime | None = None,
) -> str:
    """Sign a session token for a logged-in user."""

    issued_at = now or datetime.now(UTC)
    claims = {
        "user_id": user_id,
        "username": username,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=valid_days),
    }
    return jwt.encode(claims, secret, algorithm=SESSION_ALGORITHM)


def decode_session_token(token: str, secret: str) -> int:
    """Return the user id stored in a session token.

    Raises:
        HTTPException: If the token is expired, tampered with, or incomplete.
    """

    try:
        claims = jwt.decode(token, secret, algorithms=[SESSION_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Session token is invalid") from exc

    user_id = claims.get("user_id")
    if not isinstance(user_id, int):
        raise HTTPException(status_code=401, detail="Session token is invalid")
    return user_id
