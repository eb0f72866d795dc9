"""Identity providers and the readiness-gated handle the manager uses."""

import abc
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthError, IdentityNotReadyError, ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    id: str
    email: str


class IdentityProvider(abc.ABC):
    """Who is acting. The user id scopes every roster query."""

    @abc.abstractmethod
    def current_user(self) -> Optional[User]:
        pass

    @abc.abstractmethod
    def sign_in(self, email: str, password: str) -> bool:
        pass

    @abc.abstractmethod
    def sign_out(self) -> None:
        pass


class UserDirectory:
    """Users and password hashes kept in a YAML file."""

    def __init__(self, filename: Union[str, Path]):
        self.filename = Path(filename)

    def _load(self) -> dict:
        if not self.filename.exists():
            return {"users": []}
        with open(self.filename, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        if data.get("users") is None:
            data["users"] = []
        return data

    def get(self, user_id: str) -> Optional[User]:
        for record in self._load()["users"]:
            if record["id"] == user_id:
                return User(record["id"], record["email"])
        return None

    def authenticate(self, email: str, password: str) -> Optional[User]:
        """Return the user if the credentials match, else None."""
        wanted = email.strip().lower()
        for record in self._load()["users"]:
            if record["email"].lower() == wanted:
                if check_password_hash(record["passwordHash"], password):
                    return User(record["id"], record["email"])
                return None
        return None

    def add_user(self, email: str, password: str) -> User:
        if not email or not email.strip():
            raise ValidationError("Email cannot be empty")
        if not password:
            raise ValidationError("Password cannot be empty")
        data = self._load()
        if any(r["email"].lower() == email.strip().lower() for r in data["users"]):
            raise ValidationError(f"User '{email}' already exists")
        user = User(uuid.uuid4().hex, email.strip())
        data["users"].append(
            {
                "id": user.id,
                "email": user.email,
                "passwordHash": generate_password_hash(password),
            }
        )
        with open(self.filename, "w") as fp:
            yaml.dump(data, fp, default_flow_style=False, sort_keys=False)
        return user


class DirectoryIdentityProvider(IdentityProvider):
    """
    Signs users in against a UserDirectory.

    The signed-in user id lives in this object; subclasses can keep it
    somewhere else (a web session) by overriding _load_user_id and
    _store_user_id.
    """

    def __init__(self, directory: UserDirectory):
        self.directory = directory
        self._user_id: Optional[str] = None

    def _load_user_id(self) -> Optional[str]:
        return self._user_id

    def _store_user_id(self, user_id: Optional[str]) -> None:
        self._user_id = user_id

    def current_user(self) -> Optional[User]:
        user_id = self._load_user_id()
        if user_id is None:
            return None
        return self.directory.get(user_id)

    def sign_in(self, email: str, password: str) -> bool:
        user = self.directory.authenticate(email, password)
        if user is None:
            logger.info("Failed sign-in for %s", email)
            return False
        self._store_user_id(user.id)
        return True

    def sign_out(self) -> None:
        self._store_user_id(None)


class StaticIdentityProvider(IdentityProvider):
    """A local operator who is signed in from the start (CLI use)."""

    def __init__(self, user: User):
        self._user: Optional[User] = user

    def current_user(self) -> Optional[User]:
        return self._user

    def sign_in(self, email: str, password: str) -> bool:
        # No credentials to check against
        return False

    def sign_out(self) -> None:
        self._user = None


class IdentityHandle:
    """
    Uninitialized until a provider is attached, then Ready.

    Everything that needs the identity service goes through .provider, which
    refuses to hand out a provider that is not there yet.
    """

    def __init__(self, provider: Optional[IdentityProvider] = None):
        self._provider = provider

    @property
    def is_ready(self) -> bool:
        return self._provider is not None

    def initialize(self, provider: IdentityProvider) -> None:
        self._provider = provider

    @property
    def provider(self) -> IdentityProvider:
        if self._provider is None:
            raise IdentityNotReadyError("Identity service is not initialized")
        return self._provider

    def require_user(self) -> User:
        """The signed-in user, or AuthError."""
        user = self.provider.current_user()
        if user is None:
            raise AuthError("Not signed in")
        return user
