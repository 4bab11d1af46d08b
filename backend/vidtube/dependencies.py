"""FastAPI dependencies for request authorization."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from vidtube.database import get_db
from vidtube.exceptions import AuthFailure, AuthFailureReason, TokenExpired, TokenInvalid
from vidtube.logger import auth_logger
from vidtube.models.user import User
from vidtube.redis_client import RedisClient, get_redis
from vidtube.services.auth_service import AuthService
from vidtube.services.session_service import SessionManager
from vidtube.services.user_service import UserService
from vidtube.services.user_store import UserStore
from vidtube.utils.media_storage import MediaStorage, get_media_storage

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ] = None,
) -> User:
    """Resolve the caller from the access token in the Authorization header or cookie."""
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_TOKEN_COOKIE)
    if not token:
        raise AuthFailure(AuthFailureReason.MISSING_TOKEN, "Unauthorized request")

    try:
        claims = AuthService.decode_access_token(token)
    except TokenExpired:
        raise AuthFailure(AuthFailureReason.EXPIRED_TOKEN, "Access token expired") from None
    except TokenInvalid as e:
        auth_logger.warning(f"Rejected access token: {e}")
        raise AuthFailure(AuthFailureReason.INVALID_TOKEN, "Invalid access token") from None

    user = UserStore(db).find_by_id(AuthService.user_id_from_claims(claims))
    if user is None:
        raise AuthFailure(AuthFailureReason.USER_NOT_FOUND, "Invalid access token")

    return user


def get_session_manager(db: Annotated[Session, Depends(get_db)]) -> SessionManager:
    return SessionManager(db)


def get_user_service(
    db: Annotated[Session, Depends(get_db)],
    media: Annotated[MediaStorage, Depends(get_media_storage)],
    cache: Annotated[RedisClient, Depends(get_redis)],
) -> UserService:
    return UserService(db, media, cache)
