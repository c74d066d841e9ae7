import json
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import HTTPException, Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase


# ── Base class for all models ─────────────────────────────────────────
class Base(DeclarativeBase):
    pass


def _json_serializer(obj) -> str:
    # keep non-ASCII skills searchable with LIKE
    return json.dumps(obj, ensure_ascii=False)


class Database:
    """
    Owns the async engine and session factory for one process.

    Built once at startup, stored on ``app.state.database`` and handed to
    request handlers through :func:`get_db`.
    """

    def __init__(self, url: str, *, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def _connect(self) -> None:
        kwargs: dict = {"echo": self.echo, "json_serializer": _json_serializer}
        if not self.url.startswith("sqlite"):
            kwargs.update(
                pool_size=10,
                max_overflow=20,
                pool_pre_ping=True,  # Drops stale connections before use
            )
        self.engine = create_async_engine(self.url, **kwargs)
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def init(self) -> None:
        """Connect if not already connected and create missing tables. Safe to call twice."""
        if not self.is_connected:
            self._connect()

        # registers every table on Base.metadata
        from uniconnect import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
        self.engine = None
        self.session_factory = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self.session_factory is None:
            raise RuntimeError("Database is not initialised. Call init() first.")
        async with self.session_factory() as session:
            yield session


# ── FastAPI Dependency ────────────────────────────────────────────────
# Inject this into any route with: db: AsyncSession = Depends(get_db)
async def get_db(request: Request):
    database: Database | None = getattr(request.app.state, "database", None)
    if database is None or not database.is_connected:
        raise HTTPException(status_code=500, detail="Database is not configured")

    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
