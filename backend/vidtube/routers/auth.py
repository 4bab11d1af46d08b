"""Authentication router: registration, login, token refresh, logout."""

from typing import Annotated
from fastapi import APIRouter, Depends, File, Form, Request, Response, UploadFile, status

from vidtube.config import settings
from vidtube.dependencies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    get_current_user,
    get_session_manager,
    get_user_service,
)
from vidtube.models.user import User
from vidtube.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    Token,
)
from vidtube.schemas.user import UserResponse
from vidtube.services.session_service import SessionManager
from vidtube.services.user_service import UserService
from vidtube.utils.media_storage import discard_temp, save_upload_to_temp

router = APIRouter(prefix="/users")


def _set_session_cookies(response: Response, tokens: Token) -> None:
    options = {"httponly": True, "secure": settings.cookie_secure, "samesite": "lax", "path": "/"}
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        tokens.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        **options,
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 86400,
        **options,
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    users: Annotated[UserService, Depends(get_user_service)],
    full_name: Annotated[str, Form()] = "",
    email: Annotated[str, Form()] = "",
    username: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    avatar: Annotated[UploadFile | None, File()] = None,
    cover_image: Annotated[UploadFile | None, File()] = None,
):
    """
    Register a new user.

    Multipart form with the account fields, a required avatar and an
    optional cover image.
    """
    avatar_path = await save_upload_to_temp(avatar) if avatar else None
    cover_image_path = await save_upload_to_temp(cover_image) if cover_image else None

    try:
        user = await users.register(
            full_name=full_name,
            email=email,
            username=username,
            password=password,
            avatar_path=avatar_path,
            cover_image_path=cover_image_path,
        )
    finally:
        discard_temp(avatar_path)
        discard_temp(cover_image_path)

    return user


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
):
    """
    Log in with email or username and password.

    Returns the token pair in the body and as httpOnly cookies.
    """
    result = sessions.login(body.password, email=body.email, username=body.username)
    _set_session_cookies(response, result.tokens)

    return LoginResponse(
        user=UserResponse.model_validate(result.user),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/refresh-token", response_model=Token)
async def refresh_token(
    request: Request,
    response: Response,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    body: RefreshTokenRequest | None = None,
):
    """
    Rotate the refresh token.

    The token is read from the request body, falling back to the cookie.
    The presented token stops working once this call succeeds.
    """
    presented = (body.refresh_token if body else None) or request.cookies.get(
        REFRESH_TOKEN_COOKIE
    )
    tokens = sessions.refresh(presented)
    _set_session_cookies(response, tokens)

    return tokens


@router.post("/logout")
async def logout(
    response: Response,
    current_user: Annotated[User, Depends(get_current_user)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Revoke the current session and clear the token cookies."""
    sessions.logout(current_user.id)
    response.delete_cookie(ACCESS_TOKEN_COOKIE, path="/")
    response.delete_cookie(REFRESH_TOKEN_COOKIE, path="/")

    return {"message": "User logged out successfully"}


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[User, Depends(get_current_user)],
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
):
    """Change the current user's password."""
    sessions.change_password(current_user, body.old_password, body.new_password)

    return {"message": "Password changed successfully"}
