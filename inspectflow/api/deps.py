from typing import Generator, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from inspectflow.core.config import get_settings
from inspectflow.core.errors import Unauthenticated
from inspectflow.core.rbac import Principal
from inspectflow.core.security import decode_token
from inspectflow.db.models import User
from inspectflow.db.session import SessionLocal

settings = get_settings()

# Tokens are issued by the external identity provider; tokenUrl is only for the docs UI
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)


def get_db() -> Generator:
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(oauth2_scheme),
) -> User:
    """Resolve the caller from a bearer token or the session cookie."""
    for candidate in (token, request.cookies.get(settings.session_cookie_name)):
        if not candidate:
            continue
        user_id = decode_token(candidate)
        if user_id:
            user = db.query(User).filter(User.id == user_id).first()
            if user and user.is_active:
                return user

    raise Unauthenticated()


def get_current_principal(current_user: User = Depends(get_current_user)) -> Principal:
    """The resolved caller as passed to core operations."""
    try:
        return Principal.from_user(current_user)
    except ValueError:
        # Stored role outside the known hierarchy
        raise Unauthenticated()
