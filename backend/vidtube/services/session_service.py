"""Session manager: login, refresh with rotation, logout, password change."""

import hmac
from dataclasses import dataclass

from sqlalchemy.orm import Session

from vidtube.config import settings
from vidtube.exceptions import (
    AuthFailure,
    AuthFailureReason,
    TokenExpired,
    TokenInvalid,
    ValidationFailure,
)
from vidtube.logger import auth_logger
from vidtube.models.user import User
from vidtube.schemas.auth import Token
from vidtube.services.auth_service import AuthService
from vidtube.services.credentials import hash_password, verify_password
from vidtube.services.session_store import SessionStore
from vidtube.services.user_store import UserStore


@dataclass
class LoginResult:
    user: User
    tokens: Token


class SessionManager:
    """
    Drives a user's session through Anonymous, Authenticated and Revoked.

    A user has one valid refresh token at a time. Login overwrites it,
    refresh replaces it only if the presented token is the stored one,
    logout clears it.
    """

    def __init__(self, db: Session):
        self.users = UserStore(db)
        self.sessions = SessionStore(db)

    def login(
        self, password: str, email: str | None = None, username: str | None = None
    ) -> LoginResult:
        """
        Verify credentials and start a new session.

        Raises:
            ValidationFailure: no identifier or no password
            AuthFailure: unknown user or wrong password; no tokens are issued
        """
        email = (email or "").strip()
        username = (username or "").strip()
        if not (email or username) or not password:
            raise ValidationFailure("Email or username and password are required")

        user = self.users.find_by_identifier(email=email, username=username)
        if user is None:
            auth_logger.info(f"Login failed: no user for {email or username}")
            raise AuthFailure(AuthFailureReason.USER_NOT_FOUND, "Invalid credentials")

        if not verify_password(password, user.password_hash):
            auth_logger.info(f"Login failed: wrong password for user {user.id}")
            raise AuthFailure(AuthFailureReason.BAD_CREDENTIALS, "Invalid credentials")

        tokens = AuthService.create_tokens_for_user(user)
        # Single session: any earlier refresh token stops working here
        self.sessions.write(user.id, tokens.refresh_token)

        auth_logger.info(f"User {user.id} logged in")
        return LoginResult(user=user, tokens=tokens)

    def refresh(self, presented_token: str | None) -> Token:
        """
        Exchange the current refresh token for a new pair.

        Raises:
            AuthFailure: missing, invalid, expired, unknown user, or not the
                stored token (replayed or superseded)
        """
        if not presented_token:
            raise AuthFailure(AuthFailureReason.MISSING_TOKEN, "No refresh token found")

        try:
            claims = AuthService.decode_refresh_token(presented_token)
        except TokenExpired:
            auth_logger.info("Refresh rejected: expired token")
            raise AuthFailure(
                AuthFailureReason.EXPIRED_TOKEN, "Refresh token expired"
            ) from None
        except TokenInvalid as e:
            auth_logger.warning(f"Refresh rejected: {e}")
            raise AuthFailure(
                AuthFailureReason.INVALID_TOKEN, "Invalid refresh token"
            ) from None

        user_id = AuthService.user_id_from_claims(claims)
        user = self.users.find_by_id(user_id)
        if user is None:
            auth_logger.warning(f"Refresh rejected: user {user_id} not found")
            raise AuthFailure(AuthFailureReason.USER_NOT_FOUND, "Invalid refresh token")

        stored = user.refresh_token or ""
        if not hmac.compare_digest(presented_token.encode(), stored.encode()):
            auth_logger.warning(f"Refresh rejected: stale token for user {user_id}")
            raise AuthFailure(
                AuthFailureReason.TOKEN_REUSED, "Expired or invalid refresh token"
            )

        tokens = AuthService.create_tokens_for_user(user)
        if not self.sessions.rotate(user_id, presented_token, tokens.refresh_token):
            # A concurrent refresh or login replaced the token after our check
            auth_logger.warning(f"Refresh rejected: lost rotation race for user {user_id}")
            raise AuthFailure(
                AuthFailureReason.TOKEN_REUSED, "Expired or invalid refresh token"
            )

        auth_logger.info(f"Rotated refresh token for user {user_id}")
        return tokens

    def logout(self, user_id: int) -> None:
        """Revoke the session. The caller identity comes from the access token."""
        self.sessions.clear(user_id)
        auth_logger.info(f"User {user_id} logged out")

    def change_password(self, user: User, old_password: str, new_password: str) -> None:
        """
        Replace the password hash.

        Open sessions survive unless revoke_sessions_on_password_change is set.
        """
        if not new_password or not new_password.strip():
            raise ValidationFailure("New password is required")
        if not verify_password(old_password, user.password_hash):
            raise ValidationFailure("Invalid old password")

        user.password_hash = hash_password(new_password)
        self.users.save(user)

        if settings.revoke_sessions_on_password_change:
            self.sessions.clear(user.id)
            auth_logger.info(f"User {user.id} changed password, session revoked")
        else:
            auth_logger.info(f"User {user.id} changed password")
