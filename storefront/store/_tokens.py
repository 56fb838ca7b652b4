"""
Token store — persisted session triple (token, user snapshot, expiry).

The Session Manager is the only writer. Values are stored as strings; the
owner decides how the user snapshot is encoded.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from storefront.store._types import Storage


@dataclass(frozen=True, slots=True)
class StoredSession:
    """Raw persisted session. All three parts are present or none is."""

    token: str = field(repr=False)
    user: str
    expires_at: int


class TokenStore:
    """
    Typed accessors over the three session keys.

    Example:
        tokens = TokenStore(MemoryStorage())
        tokens.save(StoredSession(token="eyJ...", user='{"id": "1"}', expires_at=...))
        tokens.load()   # StoredSession | None
        tokens.clear()
    """

    TOKEN_KEY = "auth_token"
    USER_KEY = "auth_user"
    EXPIRES_KEY = "auth_expires_at"

    __slots__ = ("_storage", "_prefix")

    def __init__(self, storage: Storage, namespace: str = "") -> None:
        self._storage = storage
        self._prefix = f"{namespace}:" if namespace else ""

    def load(self) -> StoredSession | None:
        """Return the stored triple, or None when any part is missing or malformed."""
        token = self._storage.get(self._key(self.TOKEN_KEY))
        user = self._storage.get(self._key(self.USER_KEY))
        expires_raw = self._storage.get(self._key(self.EXPIRES_KEY))
        if not token or not user or not expires_raw:
            return None
        try:
            expires_at = int(expires_raw)
        except ValueError:
            return None
        return StoredSession(token=token, user=user, expires_at=expires_at)

    def has_any(self) -> bool:
        return any(
            self._storage.get(self._key(k)) is not None
            for k in (self.TOKEN_KEY, self.USER_KEY, self.EXPIRES_KEY)
        )

    def save(self, stored: StoredSession) -> None:
        self._storage.set(self._key(self.TOKEN_KEY), stored.token)
        self._storage.set(self._key(self.USER_KEY), stored.user)
        self._storage.set(self._key(self.EXPIRES_KEY), str(stored.expires_at))

    def clear(self) -> None:
        for key in (self.TOKEN_KEY, self.USER_KEY, self.EXPIRES_KEY):
            self._storage.remove(self._key(key))

    def _key(self, key: str) -> str:
        return self._prefix + key


__all__ = ("StoredSession", "TokenStore")
