"""Bearer tokens carrying the caller's identity.

The ``sub`` claim is the identity every booking is stamped with: the caller's
email, stripped and lower-cased. Tokens are issued by the login service; this
module only needs to mint them for tests and local tooling.
"""

from datetime import datetime, timedelta, timezone

import jwt

from coachbook.core import config
from coachbook.scheduling.errors import Unauthenticated

REQUIRED_CLAIMS = ["sub", "exp"]


def normalize_identity(identity: str) -> str:
    return (identity or "").strip().lower()


def create_access_token(identity: str, expires_minutes: int | None = None) -> str:
    subject = normalize_identity(identity)
    if not subject:
        raise ValueError("A token needs a non-empty identity.")

    if expires_minutes is None:
        expires_minutes = config.JWT_EXPIRES_MINUTES
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": REQUIRED_CLAIMS},
    )


def read_identity(token: str) -> str:
    """Verify ``token`` and return the normalized identity in its subject.

    Raises ``Unauthenticated`` for a bad signature, an expired token, a missing
    claim, or a blank subject.
    """
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise Unauthenticated("Invalid token") from exc

    subject = payload["sub"]
    identity = normalize_identity(subject) if isinstance(subject, str) else ""
    if not identity:
        raise Unauthenticated("Invalid token subject")
    return identity
