"""
SQLAlchemy integration — durable key/value storage in any SQL database.

Usage:
    engine = create_engine("sqlite:///storefront.db")
    storage = SQLAlchemyStorage(engine)

    storefront = Storefront.build(config, storage=storage)

The table is created on first use. Database failures are logged and
degrade to a miss (reads) or a dropped write, matching the Storage
contract that backends never raise.
"""

from datetime import datetime

import structlog
from sqlalchemy import DateTime, Engine, String, Text, delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# Table
# ═══════════════════════════════════════════════════════════════════════════════


class Base(DeclarativeBase):
    pass


class KeyValueRow(Base):
    """One persisted storage entry."""

    __tablename__ = "storefront_kv"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.now,
        onupdate=datetime.now,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Storage
# ═══════════════════════════════════════════════════════════════════════════════


class SQLAlchemyStorage:
    """
    Storage backed by a SQLAlchemy engine.

    Note: synchronous, like the Storage surface it implements.
    """

    def __init__(self, engine: Engine, *, create_schema: bool = True) -> None:
        self._engine = engine
        self._ready = not create_schema

    def get(self, key: str) -> str | None:
        if not self._ensure_schema():
            return None
        try:
            with Session(self._engine) as session:
                stmt = select(KeyValueRow.value).where(KeyValueRow.key == key)
                return session.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning("storage_read_failed", key=key, error=str(e))
            return None

    def set(self, key: str, value: str) -> None:
        if not self._ensure_schema():
            return
        try:
            with Session(self._engine) as session:
                session.merge(KeyValueRow(key=key, value=value, updated_at=datetime.now()))
                session.commit()
        except SQLAlchemyError as e:
            logger.warning("storage_write_failed", key=key, error=str(e))

    def remove(self, key: str) -> None:
        if not self._ensure_schema():
            return
        try:
            with Session(self._engine) as session:
                session.execute(delete(KeyValueRow).where(KeyValueRow.key == key))
                session.commit()
        except SQLAlchemyError as e:
            logger.warning("storage_remove_failed", key=key, error=str(e))

    def _ensure_schema(self) -> bool:
        if self._ready:
            return True
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            logger.warning("storage_unavailable", error=str(e))
            return False
        self._ready = True
        return True


__all__ = (
    "KeyValueRow",
    "SQLAlchemyStorage",
)
