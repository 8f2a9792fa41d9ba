import secrets
import time

import bcrypt

from carfleet.config import settings

# Fixed user list, hashed once at startup: username -> bcrypt hash
_users: dict[str, str] = {}

# Simple in-memory token store. Tokens do not survive a restart.
_tokens: dict[str, dict] = {}


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(
        password.encode("utf-8"),
        password_hash.encode("utf-8"),
    )


def seed_users(entries: list[str]) -> int:
    """Load ``username:password`` entries into the user list. Returns the count."""
    _users.clear()
    for entry in entries:
        username, sep, password = entry.partition(":")
        if not sep or not username.strip() or not password:
            continue
        _users[username.strip()] = hash_password(password)
    return len(_users)


def authenticate(username: str, password: str) -> bool:
    password_hash = _users.get(username)
    if password_hash is None:
        return False
    return verify_password(password, password_hash)


def create_token(username: str) -> str:
    """Create a new bearer token and return it."""
    token = secrets.token_urlsafe(32)
    _tokens[token] = {
        "username": username,
        "created_at": time.time(),
    }
    return token


def validate_token(token: str) -> dict | None:
    """Validate a bearer token. Returns token data or None."""
    data = _tokens.get(token)
    if data is None:
        return None
    elapsed = time.time() - data["created_at"]
    if elapsed > settings.TOKEN_MAX_AGE:
        _tokens.pop(token, None)
        return None
    return data


def destroy_token(token: str) -> None:
    """Remove a token."""
    _tokens.pop(token, None)
