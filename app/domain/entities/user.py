"""Domain entity representing a user profile."""

from dataclasses import dataclass


@dataclass
class User:
    """Profile attributes needed to address a notification recipient."""

    id: int | None
    username: str
    email: str | None
    is_active: bool = True

    def has_email(self) -> bool:
        """Return ``True`` when the user has a non-blank email address."""

        return bool(self.email and self.email.strip())
