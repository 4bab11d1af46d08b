"""Session store: the refresh_token column of a user row."""

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vidtube.exceptions import StorageError
from vidtube.logger import db_logger
from vidtube.models.user import User


class SessionStore:
    """
    Holds at most one refresh token per user.

    write() overwrites unconditionally (login), rotate() swaps only when the
    stored value still equals the presented one (refresh), clear() empties
    the field (logout).
    """

    def __init__(self, db: Session):
        self.db = db

    def _update(self, query, value: str | None) -> int:
        try:
            count = query.update({User.refresh_token: value}, synchronize_session=False)
            self.db.commit()
            return count
        except SQLAlchemyError as e:
            self.db.rollback()
            db_logger.error(f"Session store update failed: {e}")
            raise StorageError() from e

    def write(self, user_id: int, refresh_token: str) -> None:
        """Replace whatever refresh token the user had."""
        self._update(self.db.query(User).filter(User.id == user_id), refresh_token)

    def rotate(self, user_id: int, expected: str, refresh_token: str) -> bool:
        """
        Compare-and-swap the stored token.

        Returns:
            True if the stored value was still `expected` and is now replaced,
            False if another login or refresh got there first
        """
        query = self.db.query(User).filter(
            User.id == user_id, User.refresh_token == expected
        )
        return self._update(query, refresh_token) == 1

    def clear(self, user_id: int) -> None:
        self._update(self.db.query(User).filter(User.id == user_id), None)
