"""Credential service: registration, password login and bearer-token checks.

Everything downstream of this module only sees a :class:`Principal`; the
booking services never look at tokens or password hashes.
"""

import logging
import re
from dataclasses import dataclass

import jwt
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from campus_scheduler.auth import jwt_handler, passwords
from campus_scheduler.core.errors import AuthError, ConflictError, InternalError, RequestValidationFailed
from campus_scheduler.models.user import ROLES, User

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
DUPLICATE_USER_MESSAGE = "User with this email or username already exists"


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, handed explicitly to every service call."""

    id: int
    role: str
    username: str

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, role=user.role, username=user.username)


def _validate_registration(username, email, password, role, full_name) -> None:
    if not all([username, email, password, role, full_name]):
        raise RequestValidationFailed("All required fields must be provided")

    if role not in ROLES:
        raise RequestValidationFailed("Role must be either student or professor")

    if len(username) < 3 or len(username) > 30:
        raise RequestValidationFailed("Username must be between 3 and 30 characters")
    if not USERNAME_PATTERN.match(username):
        raise RequestValidationFailed("Username can only contain letters, numbers and underscores")

    if not EMAIL_PATTERN.match(email):
        raise RequestValidationFailed("Invalid email format")

    if len(password) < 6 or not re.search(r"[A-Za-z]", password) or not re.search(r"\d", password):
        raise RequestValidationFailed("Password must be at least 6 characters and include letters and numbers")

    if len(full_name) < 2 or len(full_name) > 100:
        raise RequestValidationFailed("Full name must be between 2 and 100 characters")


class CredentialService:
    def __init__(self, db: Session):
        self.db = db

    def issue_token(self, user: User) -> str:
        return jwt_handler.create_access_token(user.id, user.role)

    def register(
        self,
        username: str | None,
        email: str | None,
        password: str | None,
        role: str | None,
        full_name: str | None,
        department: str | None = None,
    ) -> tuple[User, str]:
        username = (username or "").strip()
        email = (email or "").strip().lower()
        full_name = (full_name or "").strip()
        _validate_registration(username, email, password, role, full_name)

        existing = self.db.query(User).filter(
            or_(func.lower(User.email) == email, User.username == username)
        ).first()
        if existing:
            raise ConflictError(DUPLICATE_USER_MESSAGE)

        user = User(
            username=username,
            email=email,
            hashed_password=passwords.hash_password(password),
            role=role,
            full_name=full_name,
            department=(department or "").strip() or None,
        )
        try:
            self.db.add(user)
            self.db.commit()
            self.db.refresh(user)
        except IntegrityError as exc:
            self.db.rollback()
            raise ConflictError(DUPLICATE_USER_MESSAGE) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("Registration failed for %s", username)
            raise InternalError("Server error during registration") from exc

        logger.info("Registered %s %s (id=%s)", role, username, user.id)
        return user, self.issue_token(user)

    def identify(self, username_or_email: str | None, password: str | None) -> User:
        if not username_or_email or not password:
            raise RequestValidationFailed("Username and password are required")

        identifier = username_or_email.strip()
        user = self.db.query(User).filter(
            or_(User.username == identifier, User.email == identifier.lower())
        ).first()

        if user is None or not passwords.verify_password(password, user.hashed_password):
            raise AuthError("Invalid credentials")

        return user

    def login(self, username_or_email: str | None, password: str | None) -> tuple[User, str]:
        user = self.identify(username_or_email, password)
        logger.info("Login succeeded for %s", user.username)
        return user, self.issue_token(user)

    def resolve_user(self, token: str | None) -> User:
        if not token:
            raise AuthError("Access denied. No token provided.")

        try:
            payload = jwt_handler.decode_access_token(token)
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("Token expired.") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("Invalid token.") from exc

        subject = payload.get("sub")
        try:
            user_id = int(subject)
        except (TypeError, ValueError) as exc:
            raise AuthError("Invalid token.") from exc

        user = self.db.get(User, user_id)
        if user is None:
            raise AuthError("Invalid token. User not found.")
        return user

    def authenticate(self, token: str | None) -> Principal:
        return Principal.from_user(self.resolve_user(token))
