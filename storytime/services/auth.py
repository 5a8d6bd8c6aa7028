"""Account registration, password hashing and bearer token issuance."""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storytime.config import get_settings
from storytime.errors import AuthenticationError, ConflictError
from storytime.models.user import AuthToken, User

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 210_000


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt.hex()}${digest.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    try:
        algorithm, iterations, salt_hex, digest_hex = password_hash.split("$", maxsplit=3)
        if algorithm != "pbkdf2_sha256":
            return False
        recomputed = hashlib.pbkdf2_hmac(
            "sha256",
            password.encode("utf-8"),
            bytes.fromhex(salt_hex),
            int(iterations),
        )
    except ValueError:
        # Malformed stored hash
        return False
    return hmac.compare_digest(recomputed.hex(), digest_hex)


class AuthService:
    """Users and their bearer tokens."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self.settings = get_settings()

    def register(self, email: str, password: str) -> User:
        email = email.strip().lower()
        existing = self.db.scalar(select(User).where(User.email == email))
        if existing:
            raise ConflictError("User with this email already exists")

        user = User(email=email, password_hash=hash_password(password))
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("User with this email already exists") from e
        self.db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    def login(self, email: str, password: str) -> AuthToken:
        user = self.db.scalar(select(User).where(User.email == email.strip().lower()))
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")

        token = AuthToken(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=self.settings.token_ttl_hours),
        )
        self.db.add(token)
        self.db.commit()
        self.db.refresh(token)
        return token

    def authenticate(self, token_value: str) -> User:
        """Resolve a bearer token to its user."""
        user = self.db.scalar(
            select(User)
            .join(AuthToken, AuthToken.user_id == User.id)
            .where(AuthToken.token == token_value)
            .where(AuthToken.expires_at > datetime.now(timezone.utc))
        )
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        return user

    def logout(self, token_value: str) -> None:
        self.db.execute(delete(AuthToken).where(AuthToken.token == token_value))
        self.db.commit()
