"""
Database engine and session factory.

`get_session` is the request-scoped dependency used by every router.
SQLite URLs (tests, local runs) share a single connection through StaticPool.
"""

from typing import AsyncIterator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from intranet.config.settings import settings
from intranet.db.base_model import Base
from intranet.utils.logger import get_logger

logger = get_logger(__name__)


def build_engine(url: str, echo: bool = False):
    """Create an async engine; in-process SQLite gets a static pool."""
    if url.startswith("sqlite"):
        sqlite_engine = create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        _enable_sqlite_savepoints(sqlite_engine)
        return sqlite_engine
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def _enable_sqlite_savepoints(sqlite_engine) -> None:
    """
    Let SQLAlchemy emit BEGIN itself so SAVEPOINT (session.begin_nested)
    behaves on the sqlite driver, which otherwise manages transactions on its own.
    """

    @event.listens_for(sqlite_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(sqlite_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
async_session_factory = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Yield a session; roll back whatever is pending if the request fails."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


def import_models() -> None:
    """Register every ORM model on the shared metadata."""
    import intranet.apps.auth.models  # noqa: F401
    import intranet.apps.departments.models  # noqa: F401
    import intranet.apps.posts.models  # noqa: F401
    import intranet.apps.groups.models  # noqa: F401
    import intranet.apps.chats.models  # noqa: F401
    import intranet.apps.events.models  # noqa: F401
    import intranet.apps.news.models  # noqa: F401
    import intranet.apps.files.models  # noqa: F401
    import intranet.apps.notifications.models  # noqa: F401
    import intranet.apps.quick_access.models  # noqa: F401
    import intranet.apps.admin.models  # noqa: F401


async def init_models(bind=None) -> None:
    """Create all tables. Used at startup when AUTO_CREATE_TABLES is set, and by tests."""
    import_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured")


async def drop_models(bind=None) -> None:
    import_models()
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
