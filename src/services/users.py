"""
User registry with a JSON snapshot on disk and per-user token directories.
"""

import json
import logging
import shutil
import threading
import uuid
from pathlib import Path

from core.config import TOKENS_DIR, USERS_FILE
from models.users import User

logger = logging.getLogger(__name__)


def generate_user_id() -> str:
    return f"user_{uuid.uuid4().hex[:8]}"


class UserManager:
    """
    Owns the user registry and is the only writer of its snapshot file.

    Load failures start an empty registry; save failures are logged and the
    in-memory change is kept.
    """

    def __init__(self, users_file: Path = USERS_FILE, tokens_dir: Path = TOKENS_DIR):
        self.users_file = Path(users_file)
        self.tokens_dir = Path(tokens_dir)
        self._users: dict[str, User] = {}
        self._lock = threading.RLock()

        self._load()
        self.tokens_dir.mkdir(parents=True, exist_ok=True)

    # ----- persistence -----

    def _load(self) -> None:
        if not self.users_file.exists():
            logger.info("No user snapshot at %s; starting fresh", self.users_file)
            return

        try:
            data = json.loads(self.users_file.read_text(encoding="utf-8"))
            users = [User.from_dict(item) for item in data.get("users", [])]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Could not load users from %s: %s", self.users_file, e)
            return

        self._users = {user.user_id: user for user in users}
        logger.info("Loaded %d user(s)", len(self._users))

    def _save(self) -> None:
        payload = {"users": [user.to_dict() for user in self._users.values()]}
        tmp_path = self.users_file.with_suffix(".tmp")
        try:
            self.users_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            tmp_path.replace(self.users_file)
        except OSError as e:
            logger.warning("Could not save users to %s: %s", self.users_file, e)

    # ----- registry -----

    def register_user(self, username: str, email: str) -> User:
        """Register a user; an existing email (any case) returns that user."""
        email = email.strip()
        with self._lock:
            existing = self.get_user_by_email(email)
            if existing is not None:
                logger.info("User with email %s already exists", email)
                return existing

            user_id = generate_user_id()
            while user_id in self._users:
                user_id = generate_user_id()

            tokens_location = self.tokens_dir / user_id
            try:
                tokens_location.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning("Could not create token directory %s: %s", tokens_location, e)

            user = User(
                user_id=user_id,
                username=username,
                email=email,
                tokens_location=str(tokens_location),
            )
            self._users[user_id] = user
            self._save()

        logger.info("User registered: %s (%s)", username, email)
        return user

    def login_user(self, email: str) -> User | None:
        with self._lock:
            user = self.get_user_by_email(email)
            if user is None:
                logger.info("User not found with email: %s", email)
                return None
            user.login()
            self._save()
        return user

    def mark_authenticated(self, user_id: str) -> User | None:
        """Record a completed OAuth flow."""
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            user.login()
            self._save()
        return user

    def logout_user(self, user_id: str) -> User | None:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            user.logout()
            self._save()
        return user

    def get_user_by_id(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def get_user_by_email(self, email: str) -> User | None:
        wanted = (email or "").strip().lower()
        for user in list(self._users.values()):
            if user.email.lower() == wanted:
                return user
        return None

    def get_all_users(self) -> list[User]:
        return list(self._users.values())

    def delete_user(self, user_id: str) -> bool:
        """Remove a user and their token directory."""
        with self._lock:
            user = self._users.pop(user_id, None)
            if user is None:
                return False

            tokens_location = Path(user.tokens_location)
            if tokens_location.exists():
                try:
                    shutil.rmtree(tokens_location)
                except OSError as e:
                    logger.warning("Could not delete tokens for %s: %s", user_id, e)
            self._save()

        logger.info("User deleted: %s", user.display_name)
        return True
