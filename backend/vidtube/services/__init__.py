from vidtube.services.auth_service import AuthService
from vidtube.services.session_service import SessionManager, LoginResult
from vidtube.services.user_service import UserService

__all__ = ["AuthService", "SessionManager", "LoginResult", "UserService"]
