"""
Identity

Current-user capability consumed by the record store.

Copyright (c) 2024 Cleansheet LLC
License: CC BY 4.0
"""

from dataclasses import asdict, dataclass
from pathlib import Path
import logging
import uuid

import yaml

from medhelp.errors import AuthenticationRequiredError

logger = logging.getLogger(__name__)

_USER_NAMESPACE = uuid.UUID("6f1d2a4e-8c1b-4d5e-9a3f-2b7c9e0d1f4a")


@dataclass(frozen=True)
class User:
    """A signed-in clinician."""

    id: str
    name: str
    email: str = ""
    avatar: str | None = None

    @classmethod
    def from_email(cls, email: str, name: str | None = None) -> "User":
        """Create a user whose id is derived from the email address."""
        email = email.strip().lower()
        return cls(
            id=str(uuid.uuid5(_USER_NAMESPACE, email)),
            name=name or email or "User",
            email=email,
        )


class IdentityProvider:
    """Base identity provider: exposes the current user or None."""

    def current_user(self) -> User | None:
        raise NotImplementedError

    def login(self, user: User) -> User:
        raise NotImplementedError

    def logout(self) -> None:
        raise NotImplementedError

    @property
    def is_authenticated(self) -> bool:
        return self.current_user() is not None

    def require_user(self) -> User:
        """Return the current user or raise AuthenticationRequiredError."""
        user = self.current_user()
        if user is None:
            raise AuthenticationRequiredError()
        return user


class StaticIdentityProvider(IdentityProvider):
    """Identity held in memory, set per request or per test."""

    def __init__(self, user: User | None = None):
        self._user = user

    def current_user(self) -> User | None:
        return self._user

    def login(self, user: User) -> User:
        self._user = user
        return user

    def logout(self) -> None:
        self._user = None


class ProfileIdentityProvider(IdentityProvider):
    """Identity persisted as a YAML profile in the data directory."""

    def __init__(self, data_dir: str | Path):
        self.path = Path(data_dir).expanduser() / "profile.yaml"

    def current_user(self) -> User | None:
        if not self.path.exists():
            return None
        try:
            with open(self.path) as f:
                data = yaml.safe_load(f) or {}
            return User(**data)
        except (OSError, TypeError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable profile %s: %s", self.path, e)
            return None

    def login(self, user: User) -> User:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(asdict(user), f)
        logger.info("Signed in as %s", user.email or user.id)
        return user

    def logout(self) -> None:
        if self.path.exists():
            self.path.unlink()
        logger.info("Signed out")
