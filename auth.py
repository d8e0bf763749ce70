from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWTError
from passlib.context import CryptContext

from config import Settings
from errors import Conflict, Unauthorized
from schemas import User
from storage import DocumentStore

logger = logging.getLogger(__name__)

USERS = "user"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return bool(pwd_context.verify(plain_password, hashed_password))
    except (ValueError, TypeError) as e:
        logger.error("Error verifying password: %s", e)
        return False


def create_access_token(user: User, settings: Settings, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.token_ttl_minutes))
    claims: Dict[str, Any] = {"sub": user.id, "user": user.user, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret.get_secret_value(), algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> str:
    """Return the user id carried by a valid token, else raise Unauthorized."""
    try:
        payload = jwt.decode(token, settings.jwt_secret.get_secret_value(), algorithms=[settings.jwt_algorithm])
    except PyJWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise Unauthorized("Invalid or expired token") from e
    user_id = payload.get("sub")
    if not isinstance(user_id, str) or not user_id:
        raise Unauthorized("Invalid or expired token")
    return user_id


class AuthService:
    def __init__(self, store: DocumentStore, settings: Settings):
        self.store = store
        self.settings = settings

    def find_user(self, identifier: str) -> Optional[User]:
        docs = self.store.find(USERS, {"user": identifier})
        return User.model_validate(docs[0]) if docs else None

    def register(self, identifier: str, password: str) -> User:
        if self.find_user(identifier) is not None:
            raise Conflict(f"User {identifier} already exists")
        user = User(user=identifier, password_hash=hash_password(password))
        user.id = self.store.create_document(USERS, user)
        logger.info("Registered user %s", identifier)
        return user

    def login(self, identifier: str, password: str) -> str:
        user = self.find_user(identifier)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login for %s", identifier)
            raise Unauthorized("Invalid user or password")
        logger.info("Login for %s", identifier)
        return create_access_token(user, self.settings)

    def authenticate(self, token: Optional[str]) -> str:
        """Verified user id for a bearer token. The user must still exist."""
        if not token:
            raise Unauthorized("Missing bearer token")
        user_id = decode_access_token(token, self.settings)
        if self.store.get(USERS, user_id) is None:
            raise Unauthorized("Unknown user")
        return user_id
