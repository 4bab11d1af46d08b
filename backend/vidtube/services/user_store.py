"""User record store backed by SQLAlchemy."""

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from vidtube.exceptions import ConflictError, StorageError
from vidtube.logger import db_logger
from vidtube.models.user import User


class UserStore:
    """Lookups and writes on the users table. Database errors become StorageError."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> User | None:
        try:
            return self.db.query(User).filter(User.id == user_id).first()
        except SQLAlchemyError as e:
            db_logger.error(f"User lookup by id {user_id} failed: {e}")
            raise StorageError() from e

    def find_by_username(self, username: str) -> User | None:
        try:
            return (
                self.db.query(User)
                .filter(User.username == username.strip().lower())
                .first()
            )
        except SQLAlchemyError as e:
            db_logger.error(f"User lookup by username failed: {e}")
            raise StorageError() from e

    def find_by_identifier(
        self, email: str | None = None, username: str | None = None
    ) -> User | None:
        """Find a user whose email or username matches either given value."""
        conditions = []
        if email:
            conditions.append(User.email == email.strip().lower())
        if username:
            conditions.append(User.username == username.strip().lower())
        if not conditions:
            return None

        try:
            return self.db.query(User).filter(or_(*conditions)).first()
        except SQLAlchemyError as e:
            db_logger.error(f"User lookup by identifier failed: {e}")
            raise StorageError() from e

    def email_taken(self, email: str, exclude_user_id: int | None = None) -> bool:
        try:
            query = self.db.query(User.id).filter(User.email == email.strip().lower())
            if exclude_user_id is not None:
                query = query.filter(User.id != exclude_user_id)
            return query.first() is not None
        except SQLAlchemyError as e:
            db_logger.error(f"Email lookup failed: {e}")
            raise StorageError() from e

    def save(self, user: User) -> User:
        """
        Insert or update a user and reload it from the database.

        Raises:
            ConflictError: email or username taken by a concurrent write
            StorageError: any other database failure
        """
        username = user.username
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
            return user
        except IntegrityError as e:
            self.db.rollback()
            db_logger.info(f"Saving user {username} hit a unique constraint: {e.orig}")
            raise ConflictError("User with email or username already exists") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            db_logger.error(f"Saving user {username} failed: {e}")
            raise StorageError() from e
