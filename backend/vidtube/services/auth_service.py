"""Authentication service for signing and verifying JWT tokens."""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

from jose import jwt, ExpiredSignatureError, JOSEError, JWTError

from vidtube.config import settings
from vidtube.exceptions import TokenExpired, TokenInvalid, TokenIssueError
from vidtube.models.user import User
from vidtube.schemas.auth import Token

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class AuthService:
    """Token issuer: access and refresh tokens with separate secrets and expiries."""

    @staticmethod
    def _encode(data: Dict[str, Any], secret: str, expire: datetime, token_type: str) -> str:
        now = datetime.now(timezone.utc)
        to_encode = data.copy()
        # jti keeps two tokens issued within the same second distinct
        to_encode.update(
            {"exp": expire, "iat": now, "type": token_type, "jti": uuid.uuid4().hex}
        )

        try:
            return jwt.encode(to_encode, secret, algorithm=settings.algorithm)
        except JOSEError as e:
            raise TokenIssueError() from e

    @staticmethod
    def create_access_token(
        data: Dict[str, Any], expires_delta: timedelta | None = None
    ) -> str:
        """
        Create a JWT access token.

        Args:
            data: Data to encode in the token
            expires_delta: Lifetime override, defaults to the configured minutes

        Returns:
            Encoded JWT token
        """
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        )
        return AuthService._encode(
            data, settings.access_token_secret, expire, ACCESS_TOKEN_TYPE
        )

    @staticmethod
    def create_refresh_token(
        data: Dict[str, Any], expires_delta: timedelta | None = None
    ) -> str:
        """
        Create a JWT refresh token.

        Args:
            data: Data to encode in the token
            expires_delta: Lifetime override, defaults to the configured days

        Returns:
            Encoded JWT refresh token
        """
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(days=settings.refresh_token_expire_days)
        )
        return AuthService._encode(
            data, settings.refresh_token_secret, expire, REFRESH_TOKEN_TYPE
        )

    @staticmethod
    def create_tokens_for_user(user: User) -> Token:
        """
        Create both access and refresh tokens for a user.

        The access token carries the public identity fields, the refresh
        token only the user id.
        """
        access_token = AuthService.create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "username": user.username,
                "full_name": user.full_name,
            }
        )
        refresh_token = AuthService.create_refresh_token({"sub": str(user.id)})

        return Token(access_token=access_token, refresh_token=refresh_token)

    @staticmethod
    def _decode(token: str, secret: str, token_type: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, secret, algorithms=[settings.algorithm])
        except ExpiredSignatureError as e:
            raise TokenExpired(f"{token_type} token expired") from e
        except JWTError as e:
            raise TokenInvalid(f"invalid {token_type} token") from e

        if payload.get("type") != token_type:
            raise TokenInvalid(f"expected a {token_type} token")
        if not str(payload.get("sub") or "").isdigit():
            raise TokenInvalid(f"{token_type} token has no subject")

        return payload

    @staticmethod
    def decode_access_token(token: str) -> Dict[str, Any]:
        """
        Verify an access token and return its claims.

        Raises:
            TokenExpired: expiry has passed
            TokenInvalid: bad signature, malformed, or not an access token
        """
        return AuthService._decode(token, settings.access_token_secret, ACCESS_TOKEN_TYPE)

    @staticmethod
    def decode_refresh_token(token: str) -> Dict[str, Any]:
        """
        Verify a refresh token and return its claims.

        Raises:
            TokenExpired: expiry has passed
            TokenInvalid: bad signature, malformed, or not a refresh token
        """
        return AuthService._decode(token, settings.refresh_token_secret, REFRESH_TOKEN_TYPE)

    @staticmethod
    def user_id_from_claims(claims: Dict[str, Any]) -> int:
        return int(claims["sub"])
