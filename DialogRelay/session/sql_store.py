"""
数据库会话存储 - 基于 SQLAlchemy 异步引擎的会话存储
SQL session store - session store backed by the SQLAlchemy async engine.

使用 SQLite（aiosqlite），会话数据以 JSON 文本保存。
Backed by SQLite through aiosqlite; session payload is stored as JSON text.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime

from sqlalchemy import DateTime, Float, String, Text, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from DialogRelay.session.store import SessionRecord, SessionStore

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy 声明式基类 / SQLAlchemy declarative base."""

    pass


class SessionRow(Base):
    """会话表 / Session table."""

    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    platform: Mapped[str] = mapped_column(String(50), default="", index=True)
    data: Mapped[str] = mapped_column(Text, default="{}")
    last_activity: Mapped[float | None] = mapped_column(Float, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now
    )

    def to_record(self) -> SessionRecord:
        try:
            data = json.loads(self.data)
        except (json.JSONDecodeError, TypeError):
            logger.warning("会话 %s 的数据无法解析，使用空记录", self.id)
            data = {}
        return {
            "id": self.id,
            "platform": self.platform,
            "last_activity": self.last_activity,
            "data": data,
        }


class SqlSessionStore(SessionStore):
    """
    数据库会话存储
    Database session store.
    """

    def __init__(self, db_path: str = "data/sessions.db", url: str | None = None) -> None:
        self._db_path = db_path
        if url is None:
            os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
            url = f"sqlite+aiosqlite:///{db_path}"
        self._url = url

        self._engine = create_async_engine(url, echo=False)
        self._session_factory = async_sessionmaker(
            self._engine, class_=AsyncSession, expire_on_commit=False
        )

    async def init(self) -> None:
        """
        初始化数据库表
        Initialize database tables.
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("会话数据库已初始化: %s", self._url)

    async def read(self, key: str) -> SessionRecord | None:
        async with self._session_factory() as db:
            row = await db.get(SessionRow, key)
            if row is None:
                return None
            return row.to_record()

    async def write(self, key: str, record: SessionRecord) -> None:
        """
        写入会话记录（单条 upsert，并发写入同一键时后写者生效）
        Write a record as a single upsert; concurrent writes to one key end
        with the last write.
        """
        values = {
            "id": key,
            "platform": record.get("platform", ""),
            "data": json.dumps(record.get("data", {}), ensure_ascii=False),
            "last_activity": record.get("last_activity"),
            "updated_at": datetime.now(),
        }

        async with self._session_factory() as db:
            stmt = sqlite_insert(SessionRow).values(**values)
            stmt = stmt.on_conflict_do_update(
                index_elements=[SessionRow.id],
                set_={
                    "platform": stmt.excluded.platform,
                    "data": stmt.excluded.data,
                    "last_activity": stmt.excluded.last_activity,
                    "updated_at": stmt.excluded.updated_at,
                },
            )
            await db.execute(stmt)
            await db.commit()

    async def destroy(self, key: str) -> None:
        async with self._session_factory() as db:
            row = await db.get(SessionRow, key)
            if row is not None:
                await db.delete(row)
                await db.commit()

    async def all(self) -> list[SessionRecord]:
        async with self._session_factory() as db:
            result = await db.execute(select(SessionRow))
            return [row.to_record() for row in result.scalars().all()]

    async def dispose(self) -> None:
        """关闭引擎 / Dispose engine."""
        await self._engine.dispose()
