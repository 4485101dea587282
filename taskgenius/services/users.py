"""
User directory: registration, lookup, profile updates and login checks.
"""
import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.exceptions import AuthenticationError, ConflictError, UserNotFoundError, ValidationError
from ..models.user import User
from ..utils.security import CredentialService

logger = logging.getLogger(__name__)


def _require(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} cannot be empty", context={"field": field})
    return value


class UsersService:
    """CRUD over users, unique by email."""

    def __init__(self, db: Session, credentials: CredentialService):
        self.db = db
        self.credentials = credentials

    def get_by_id(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError()
        return user

    def get_by_email(self, email: str) -> User:
        user = self.db.query(User).filter(User.email == email).first()
        if user is None:
            raise UserNotFoundError()
        return user

    def list_all(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    def _email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(User.id).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    def _commit(self, email: str) -> None:
        # the unique index still wins if two registrations race
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Email uniqueness violated on commit: {e.orig}")
            raise ConflictError("Email already registered", context={"email": email}) from e

    def create(self, name: str, email: str, password: str) -> User:
        _require(name, "name")
        _require(email, "email")
        _require(password, "password")

        if self._email_taken(email):
            raise ConflictError("Email already registered", context={"email": email})

        user = User(
            name=name.strip(),
            email=email,
            password_hash=self.credentials.hash_password(password),
        )
        self.db.add(user)
        self._commit(email)
        self.db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    def update(
        self,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
    ) -> User:
        user = self.get_by_id(user_id)

        if name is not None:
            user.name = _require(name, "name").strip()
        if email is not None and email != user.email:
            _require(email, "email")
            if self._email_taken(email, exclude_id=user_id):
                raise ConflictError("Email already registered", context={"email": email})
            user.email = email
        if password:
            user.password_hash = self.credentials.hash_password(password)

        self._commit(user.email)
        self.db.refresh(user)
        return user

    def delete(self, user_id: int) -> None:
        user = self.db.get(User, user_id)
        if user is None:
            return
        self.db.delete(user)
        self.db.commit()
        logger.info(f"Deleted user {user_id} and their tasks")

    def authenticate(self, email: str, password: str) -> User:
        """Return the user for a valid email/password pair."""
        user = self.db.query(User).filter(User.email == email).first()
        if user is None or not self.credentials.verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        return user
