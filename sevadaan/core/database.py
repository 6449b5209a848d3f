# sevadaan/core/database.py

import ssl
from typing import AsyncGenerator

from loguru import logger
from sqlmodel import SQLModel
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool
from sqlalchemy import text

from sevadaan.core.config import Settings, get_settings


# ----------------------------------------------------
# SSL for managed Postgres poolers
# ----------------------------------------------------
def make_ssl(verify: bool = True):
    ctx = ssl.create_default_context()
    if not verify:
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
    return ctx


# ----------------------------------------------------
# Engine factory
# ----------------------------------------------------
def build_engine(settings: Settings) -> AsyncEngine:
    url = settings.DATABASE_URL

    if url.startswith("sqlite"):
        # One shared connection so in-memory databases survive across sessions
        return create_async_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    connect_args = {
        "statement_cache_size": 0,  # pgbouncer / pooler safe
    }
    if settings.DB_SSL:
        connect_args["ssl"] = make_ssl(settings.DB_SSL_VERIFY)

    logger.info("Configuring database engine (pooler mode)")

    return create_async_engine(
        url,
        echo=False,
        connect_args=connect_args,
        pool_pre_ping=True,
        poolclass=NullPool,  # the pooler owns connection reuse
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


engine = build_engine(get_settings())
AsyncSessionLocal = build_session_factory(engine)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# ----------------------------------------------------
# Create tables
# ----------------------------------------------------
async def init_db(bind: AsyncEngine | None = None):
    # Model modules register their tables on SQLModel.metadata when imported
    from sevadaan.models import (  # noqa: F401
        announcement,
        audit,
        certificate,
        donation,
        emergency,
        grant,
        ngo,
        notification,
        program,
        program_registration,
        user,
        volunteer,
    )

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


# ----------------------------------------------------
# Connectivity check
# ----------------------------------------------------
async def test_connection(bind: AsyncEngine | None = None):
    async with (bind or engine).connect() as conn:
        await conn.execute(text("SELECT 1"))
