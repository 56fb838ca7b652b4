"""
Store — durable key/value persistence for session and checkout state.

    from storefront import store as St

    storage = St.MemoryStorage()                 # process lifetime
    storage = St.NullStorage()                   # non-interactive contexts
    storage = St.SQLAlchemyStorage(engine)       # durable

    tokens = St.TokenStore(storage)
    checkout = St.CheckoutStateStore(storage)
"""

from storefront.store._types import Storage, MemoryStorage, NullStorage
from storefront.store._sqlalchemy import SQLAlchemyStorage, KeyValueRow
from storefront.store._tokens import StoredSession, TokenStore
from storefront.store._checkout import CheckoutStateStore

__all__ = (
    "Storage",
    "MemoryStorage",
    "NullStorage",
    "SQLAlchemyStorage",
    "KeyValueRow",
    "StoredSession",
    "TokenStore",
    "CheckoutStateStore",
)
