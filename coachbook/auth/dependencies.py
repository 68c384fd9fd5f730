from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from coachbook.auth import jwt_handler
from coachbook.core import config
from coachbook.models.user import User
from coachbook.routes.common import get_db, http_error
from coachbook.scheduling.errors import Unauthenticated, Unauthorized

security = HTTPBearer(auto_error=False)

ADMIN_ROLE = "admin"
USER_ROLE = "user"


def resolve_user(subject: str, db: Session) -> User:
    """Look up the caller; identities unknown to the database are plain users."""
    user = db.query(User).filter(User.email == subject).first()
    if user is None:
        user = User(email=subject, role=USER_ROLE)
    return user


def is_admin(user: User) -> bool:
    return user.role == ADMIN_ROLE or (user.email or "").lower() in config.ADMIN_EMAILS


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise http_error(Unauthenticated())

    try:
        identity = jwt_handler.read_identity(credentials.credentials)
    except Unauthenticated as exc:
        raise http_error(exc) from exc

    return resolve_user(identity, db)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not is_admin(current_user):
        raise http_error(Unauthorized())
    return current_user
