"""JWT token helpers for authentication."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from warranty_api.config.settings import settings


def create_local_token(user_id: str, email: str, role: str) -> str:
    """Create a JWT access token.

    Args:
        user_id: User ID to encode in the token
        email: User email to encode in the token
        role: User role at issue time

    Returns:
        str: Encoded JWT token
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(seconds=settings.LOCAL_AUTH_TOKEN_EXP_SECONDS)
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "exp": exp,
        "iat": now,
    }
    return jwt.encode(payload, settings.LOCAL_AUTH_SECRET, algorithm="HS256")


def decode_local_token(token: str) -> dict:
    """Decode and verify a JWT token.

    Raises:
        ValueError: If token is invalid or expired
    """
    try:
        return jwt.decode(
            token,
            settings.LOCAL_AUTH_SECRET,
            algorithms=["HS256"],
        )
    except JWTError as exc:
        raise ValueError(f"Invalid token: {exc}") from exc
