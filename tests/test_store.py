import pytest
from sqlalchemy import create_engine

from storefront.store import (
    CheckoutStateStore,
    MemoryStorage,
    NullStorage,
    SQLAlchemyStorage,
    StoredSession,
    TokenStore,
)


class TestMemoryStorage:
    def test_set_get_remove(self) -> None:
        storage = MemoryStorage()
        storage.set("k", "v")
        assert storage.get("k") == "v"
        storage.remove("k")
        assert storage.get("k") is None

    def test_remove_missing_key_is_noop(self) -> None:
        storage = MemoryStorage({"a": "1"})
        storage.remove("missing")
        assert storage.keys() == frozenset({"a"})
        assert len(storage) == 1


class TestNullStorage:
    def test_never_remembers(self) -> None:
        storage = NullStorage()
        storage.set("k", "v")
        storage.remove("k")
        assert storage.get("k") is None


class TestSQLAlchemyStorage:
    @pytest.fixture
    def storage(self) -> SQLAlchemyStorage:
        return SQLAlchemyStorage(create_engine("sqlite://"))

    def test_roundtrip(self, storage: SQLAlchemyStorage) -> None:
        storage.set("auth_token", "abc")
        assert storage.get("auth_token") == "abc"

    def test_overwrite(self, storage: SQLAlchemyStorage) -> None:
        storage.set("k", "first")
        storage.set("k", "second")
        assert storage.get("k") == "second"

    def test_remove(self, storage: SQLAlchemyStorage) -> None:
        storage.set("k", "v")
        storage.remove("k")
        storage.remove("k")
        assert storage.get("k") is None

    def test_unusable_database_degrades_to_absent(self) -> None:
        storage = SQLAlchemyStorage(create_engine("sqlite:////nonexistent-dir/storefront.db"))
        storage.set("k", "v")
        storage.remove("k")
        assert storage.get("k") is None

    def test_backs_token_store(self, storage: SQLAlchemyStorage) -> None:
        tokens = TokenStore(storage)
        tokens.save(StoredSession(token="t", user='{"id": "u1"}', expires_at=42))
        assert TokenStore(storage).load() == StoredSession(token="t", user='{"id": "u1"}', expires_at=42)


class TestTokenStore:
    def test_save_writes_three_keys(self) -> None:
        storage = MemoryStorage()
        TokenStore(storage).save(StoredSession(token="t", user="{}", expires_at=1000))
        assert storage.keys() == frozenset({"auth_token", "auth_user", "auth_expires_at"})
        assert storage.get("auth_expires_at") == "1000"

    def test_partial_snapshot_loads_as_absent(self) -> None:
        storage = MemoryStorage({"auth_token": "t", "auth_expires_at": "1000"})
        tokens = TokenStore(storage)
        assert tokens.load() is None
        assert tokens.has_any()

    def test_malformed_expiry_loads_as_absent(self) -> None:
        storage = MemoryStorage({"auth_token": "t", "auth_user": "{}", "auth_expires_at": "soon"})
        assert TokenStore(storage).load() is None

    def test_clear_removes_everything(self) -> None:
        storage = MemoryStorage()
        tokens = TokenStore(storage)
        tokens.save(StoredSession(token="t", user="{}", expires_at=1000))
        tokens.clear()
        assert len(storage) == 0
        assert not tokens.has_any()

    def test_namespace_prefixes_keys(self) -> None:
        storage = MemoryStorage()
        TokenStore(storage, "shop").save(StoredSession(token="t", user="{}", expires_at=1))
        assert storage.get("shop:auth_token") == "t"
        assert TokenStore(storage).load() is None

    def test_token_hidden_from_repr(self) -> None:
        assert "secret-token" not in repr(StoredSession(token="secret-token", user="{}", expires_at=1))


class TestCheckoutStateStore:
    def test_roundtrip_and_clear(self) -> None:
        storage = MemoryStorage()
        state = CheckoutStateStore(storage)
        state.save('{"checkout_id": "c1"}')
        assert state.load() == '{"checkout_id": "c1"}'
        state.clear()
        assert state.load() is None
        assert len(storage) == 0
