"""
User registry record.
"""

from dataclasses import asdict, dataclass
from datetime import datetime

from core.config import DEFAULT_CALENDAR_ID


@dataclass
class User:
    """A registered user and where their OAuth tokens live."""

    user_id: str
    username: str
    email: str
    tokens_location: str
    calendar_id: str = DEFAULT_CALENDAR_ID
    authenticated: bool = False
    last_login: datetime | None = None

    @property
    def display_name(self) -> str:
        return self.username or self.email

    def login(self) -> None:
        self.authenticated = True
        self.last_login = datetime.now()

    def logout(self) -> None:
        self.authenticated = False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_login"] = self.last_login.isoformat() if self.last_login else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        last_login = data.get("last_login")
        return cls(
            user_id=data["user_id"],
            username=data.get("username", ""),
            email=data["email"],
            tokens_location=data["tokens_location"],
            calendar_id=data.get("calendar_id") or DEFAULT_CALENDAR_ID,
            authenticated=bool(data.get("authenticated", False)),
            last_login=datetime.fromisoformat(last_login) if last_login else None,
        )
