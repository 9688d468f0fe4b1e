"""
Shared API dependencies.
"""

import logging
from typing import Optional, Type, TypeVar

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from app.database import get_db, Base
from app.config import settings
from app.services.auth_service import auth_service
from app.core import security
from app.models.user import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)

ModelT = TypeVar("ModelT", bound=Base)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    bearer_token: Optional[str] = Depends(oauth2_scheme),
) -> User:
    """
    Resolve the session user from the session cookie or a Bearer token.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME) or bearer_token
    if not token:
        raise _unauthorized()

    try:
        payload = security.decode_access_token(token)
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise _unauthorized()

    user = auth_service.get_user_by_id(db, user_id=user_id)
    if user is None or not user.is_active:
        raise _unauthorized()

    return user


def get_owned(
    db: Session,
    model: Type[ModelT],
    object_id: int,
    user: User,
    label: str = "Resource",
) -> ModelT:
    """
    Load a row and check it belongs to the user.

    Missing -> 404, owned by someone else -> 403.
    """
    obj = db.query(model).filter(model.id == object_id).first()
    if obj is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    if obj.user_id != user.id:
        logger.warning(f"User {user.id} tried to access {label.lower()} {object_id}")
        raise HTTPException(status_code=403, detail="Forbidden")
    return obj
