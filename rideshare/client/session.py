"""
Session Store.

A ``Session`` is the locally persisted proof of authentication: the
bearer token, a snapshot of the account, the account's role and its
active role.  Stores only ever hand out complete sessions; a persisted
record missing any required field loads as ``None``.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

from rideshare.domain.entities import resolve_active_role
from rideshare.domain.enums import Role

logger = logging.getLogger(__name__)

_REQUIRED = ("token", "account", "role")


@dataclass(frozen=True)
class Session:
    token: str
    account: dict[str, Any] = field(default_factory=dict)
    role: Role = Role.PASSENGER
    active_role: Role = Role.PASSENGER

    def with_active_role(self, active_role: Role, account: Optional[dict] = None) -> "Session":
        return Session(
            token=self.token,
            account=account if account is not None else self.account,
            role=self.role,
            active_role=active_role,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["role"] = self.role.value
        data["active_role"] = self.active_role.value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Session"]:
        """Rebuild a session, or ``None`` if any required field is absent."""
        if not isinstance(data, dict) or any(not data.get(key) for key in _REQUIRED):
            return None
        try:
            role = Role(data["role"])
            active_role = resolve_active_role(role, data.get("active_role"))
        except ValueError:
            return None
        if not isinstance(data["account"], dict):
            return None
        return cls(
            token=str(data["token"]),
            account=dict(data["account"]),
            role=role,
            active_role=active_role,
        )


class SessionStore(ABC):
    @abstractmethod
    def load(self) -> Optional[Session]: ...

    @abstractmethod
    def save(self, session: Session) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...


class MemorySessionStore(SessionStore):
    """Process-local store; what tests and short-lived scripts use."""

    def __init__(self, session: Optional[Session] = None):
        self._session = session

    def load(self) -> Optional[Session]:
        return self._session

    def save(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


class FileSessionStore(SessionStore):
    """
    JSON file store.

    ``save`` writes a temporary file next to the target and renames it
    into place, and ``clear`` unlinks the file, so a concurrent reader
    sees either the old session, the new one, or none at all.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def load(self) -> Optional[Session]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return Session.from_dict(json.loads(raw))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable session file %s", self.path)
            return None

    def save(self, session: Session) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                dir=self.path.parent, prefix=".session-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(session.to_dict(), fh)
                os.chmod(tmp, 0o600)
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise

    def clear(self) -> None:
        with self._lock:
            self.path.unlink(missing_ok=True)
