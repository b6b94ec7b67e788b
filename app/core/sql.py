"""数据库引擎、会话工厂与事务作用域"""

import time
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import config
from app.core.logger import logger


class Base(DeclarativeBase):
    pass


def _engine_options(db_url: str) -> dict[str, Any]:
    url = make_url(db_url)
    options: dict[str, Any] = {"echo": config.db_echo}
    if url.get_backend_name() == "sqlite":
        options["connect_args"] = {"timeout": config.db_statement_timeout}
    else:
        options["pool_pre_ping"] = True
        options["pool_timeout"] = config.db_pool_timeout
        if url.get_driver_name() == "asyncpg":
            options["connect_args"] = {
                "timeout": config.db_statement_timeout,
                "command_timeout": config.db_statement_timeout,
                # 服务端超时以 DBAPIError 抛出
                "server_settings": {"statement_timeout": str(int(config.db_statement_timeout * 1000))},
            }
    return options


def _install_listeners(engine: AsyncEngine) -> None:
    sync_engine = engine.sync_engine

    if sync_engine.dialect.name == "sqlite":

        @event.listens_for(sync_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):  # type:ignore
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # type:ignore
        conn.info.setdefault("query_start_time", []).append(time.perf_counter())

    @event.listens_for(sync_engine, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # type:ignore
        started = conn.info["query_start_time"].pop()
        duration_ms = (time.perf_counter() - started) * 1000
        if duration_ms >= config.db_slow_query_ms:
            logger.warning("慢查询 %.1fms: %s", duration_ms, statement)

    @event.listens_for(sync_engine, "handle_error")
    def _discard_failed_start(context):  # type:ignore
        # 失败的语句不会触发 after_cursor_execute
        connection = context.connection
        if connection is not None and connection.info.get("query_start_time"):
            connection.info["query_start_time"].pop()


def build_engine(db_url: str) -> AsyncEngine:
    """按连接串创建异步引擎，并挂载外键约束与慢查询日志监听。"""
    engine = create_async_engine(db_url, **_engine_options(db_url))
    _install_listeners(engine)
    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


_engine = build_engine(config.db_url)
async_session_maker = build_session_maker(_engine)


async def load_db() -> None:
    """启动时创建缺失的表"""
    import app.models  # noqa: F401

    async with _engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("数据库已就绪: %s", make_url(config.db_url).render_as_string(hide_password=True))


async def close_db() -> None:
    await _engine.dispose()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """在同一个会话（即同一个数据库连接）上执行一组语句。

    正常退出时提交；任何异常都会先回滚再原样抛出。会话在首条语句时借出连接，
    在提交或回滚时归还，因此块内所有语句共享同一事务。
    """
    try:
        yield session
    except BaseException:
        await session.rollback()
        raise
    else:
        await session.commit()
