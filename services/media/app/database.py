from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings
from shared.database.postgres import get_async_session_factory

_session_factory: async_sessionmaker[AsyncSession] | None = None


def init_db(settings: Settings) -> async_sessionmaker[AsyncSession]:
    global _session_factory
    _session_factory = get_async_session_factory(
        settings.media_database_url,
        expire_on_commit=False,
        ssl_mode=settings.database_ssl or None,
        ssl_cert_path=settings.database_ssl_cert or None,
    )
    return _session_factory


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Database not initialized")
    return _session_factory


async def close_db() -> None:
    global _session_factory
    if _session_factory is not None:
        engine = _session_factory.kw.get("bind")
        if engine is not None:
            await engine.dispose()
        _session_factory = None
