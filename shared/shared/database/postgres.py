import ssl
from pathlib import Path
from typing import Any

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

AsyncSessionFactory = async_sessionmaker[AsyncSession]


def _ssl_connect_args(ssl_mode: str | None, ssl_cert_path: str | None) -> dict[str, Any]:
    """Return asyncpg ``connect_args`` for the requested SSL mode."""
    mode = (ssl_mode or "").lower()
    if not mode or mode == "disable":
        return {}

    if ssl_cert_path and Path(ssl_cert_path).exists():
        ctx = ssl.create_default_context(cafile=ssl_cert_path)
        return {"connect_args": {"ssl": ctx}}

    # Encrypted, no cert verification
    return {"connect_args": {"ssl": "require"}}


def get_async_engine(
    database_url: str,
    *,
    ssl_mode: str | None = None,
    ssl_cert_path: str | None = None,
    **kwargs: Any,
) -> AsyncEngine:
    options: dict[str, Any] = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }
    options.update(_ssl_connect_args(ssl_mode, ssl_cert_path))
    options.update(kwargs)
    return create_async_engine(database_url, **options)


def get_async_session_factory(
    database_url: str,
    *,
    expire_on_commit: bool = False,
    **engine_kwargs: Any,
) -> AsyncSessionFactory:
    engine = get_async_engine(database_url, **engine_kwargs)
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=expire_on_commit,
        autoflush=False,
        autocommit=False,
    )
