"""Process-wide holder of the current credential pair.

The store is the only place credentials live. It is read by the request
executor and written only by the token coordinator (login, refresh,
logout). Persistence goes through a ``CredentialStorage`` backend that
keeps the pair under three fixed keys.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError as PydanticValidationError

from .models import CredentialPair
from .telemetry import get_logger

TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"


class CredentialStorage(Protocol):
    """Persistent key/value backing for the credential pair."""

    def load(self) -> dict[str, Any]:
        """Return the persisted entries (possibly empty)."""
        ...

    def save(self, entries: dict[str, Any]) -> None:
        """Replace all persisted entries at once."""
        ...


class MemoryCredentialStorage:
    """Keeps credentials for the lifetime of the process only."""

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def load(self) -> dict[str, Any]:
        return dict(self._entries)

    def save(self, entries: dict[str, Any]) -> None:
        self._entries = dict(entries)


class FileCredentialStorage:
    """JSON file storage, replaced atomically on every write."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> dict[str, Any]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            get_logger().warning("Ignoring unreadable credentials file", path=str(self.path))
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, entries: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(entries, fh)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class TokenStore:
    """Owned cell for the current ``CredentialPair``."""

    def __init__(self, storage: CredentialStorage | None = None) -> None:
        self._storage: CredentialStorage = storage or MemoryCredentialStorage()
        self._current: CredentialPair | None = self._restore()

    def _restore(self) -> CredentialPair | None:
        entries = self._storage.load()
        token = entries.get(TOKEN_KEY)
        if not token:
            return None
        user = entries.get(USER_KEY)
        if isinstance(user, str):
            try:
                user = json.loads(user)
            except json.JSONDecodeError:
                user = None
        try:
            return CredentialPair(
                access_token=token,
                refresh_token=entries.get(REFRESH_TOKEN_KEY),
                user=user if isinstance(user, dict) else None,
            )
        except PydanticValidationError:
            get_logger().warning("Discarding invalid persisted credentials")
            return None

    @property
    def current(self) -> CredentialPair | None:
        """The current pair, or None when logged out."""
        return self._current

    @property
    def access_token(self) -> str | None:
        return self._current.access_token if self._current else None

    @property
    def refresh_token(self) -> str | None:
        return self._current.refresh_token if self._current else None

    @property
    def user(self) -> dict[str, Any] | None:
        return self._current.user if self._current else None

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def set(self, pair: CredentialPair) -> None:
        """Replace the current pair wholesale and persist it."""
        entries: dict[str, Any] = {TOKEN_KEY: pair.access_token}
        if pair.refresh_token:
            entries[REFRESH_TOKEN_KEY] = pair.refresh_token
        if pair.user is not None:
            entries[USER_KEY] = pair.user
        self._storage.save(entries)
        self._current = pair

    def clear(self) -> None:
        """Forget the current pair; all persisted keys go in one write.

        The in-memory pair is dropped even if persisting the removal fails.
        """
        self._current = None
        self._storage.save({})


_store: TokenStore | None = None


def get_token_store() -> TokenStore:
    """Get or create the process-wide token store."""
    global _store
    if _store is None:
        _store = TokenStore()
    return _store


def reset_token_store(store: TokenStore | None = None) -> None:
    """Replace the process-wide store; None yields a fresh one on next use."""
    global _store
    _store = store
