# app/core/db.py

import ssl
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import (
    DATABASE_URL,
    DB_TYPE,
    DB_POOL_SIZE,
    DB_MAX_OVERFLOW,
    DB_POOL_TIMEOUT,
    DB_SSL_VERIFY,
    DB_ECHO_POOL,
    APP_ENV,
)

# =====================================================
# BASE
# =====================================================
Base = declarative_base()


# =====================================================
# ENGINE FACTORY
# =====================================================
def _postgres_options() -> tuple[dict, dict]:
    ssl_ctx = ssl.create_default_context()
    if not DB_SSL_VERIFY:
        ssl_ctx.check_hostname = False
        ssl_ctx.verify_mode = ssl.CERT_NONE

    connect_args = {
        "ssl": ssl_ctx,
        # asyncpg behind pgbouncer cannot keep prepared statements
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
    }
    pool_args = {
        "pool_size": DB_POOL_SIZE,
        "max_overflow": DB_MAX_OVERFLOW,
        "pool_timeout": DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }
    return connect_args, pool_args


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "connect")
    def _fk_pragma(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(url: str, db_type: str, **overrides) -> AsyncEngine:
    """Engine for ``db_type`` (postgres|sqlite); ``overrides`` go straight to create_async_engine."""
    if db_type == "postgres":
        connect_args, pool_args = _postgres_options()
    else:
        connect_args, pool_args = {"check_same_thread": False}, {}

    options = {
        "echo": False,
        "echo_pool": DB_ECHO_POOL,
        "connect_args": connect_args,
        **pool_args,
        **overrides,
    }
    engine = create_async_engine(url, **options)

    if db_type == "sqlite":
        enable_sqlite_foreign_keys(engine)
    return engine


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


engine = build_engine(DATABASE_URL, DB_TYPE)
AsyncSessionLocal = build_session_factory(engine)


# =====================================================
# DEPENDENCY
# =====================================================
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


# =====================================================
# UPSERT (INSERT ... ON CONFLICT)
# =====================================================
_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def dialect_insert(db: AsyncSession, model):
    """Dialect-specific ``insert`` exposing ``on_conflict_do_update``."""
    dialect = db.get_bind().dialect.name
    try:
        return _DIALECT_INSERTS[dialect](model)
    except KeyError:
        raise RuntimeError(f"Upsert not supported on dialect {dialect}")


# =====================================================
# MODEL IMPORT
# =====================================================
import app.models  # noqa


# =====================================================
# DEV ONLY: AUTO CREATE TABLES
# =====================================================
async def init_models():
    if APP_ENV != "development":
        raise RuntimeError("init_models() is forbidden outside development")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
