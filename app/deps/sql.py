from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.sql import async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """每个请求借出一个会话，请求结束后关闭并归还连接。"""
    async with async_session_maker() as session:
        yield session
