"""迁移脚本：创建自我破坏者测评相关表，并为员工档案补充结果指针列"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection

ROOT_PATH = Path(__file__).resolve().parents[1]
if str(ROOT_PATH) not in sys.path:
    sys.path.insert(0, str(ROOT_PATH))

from app.core.config import config  # noqa: E402
from app.core.logger import logger  # noqa: E402
from app.core.sql import Base, _engine  # noqa: E402
from app.models import (  # noqa: E402
    CatalogQuestion,
    CollaboratorProfile,
    Dimension,
    InventoryAnswer,
    InventoryResult,
    LevelDescription,
    User,
)

INVENTORY_TABLES = [
    User.__table__,
    Dimension.__table__,
    CatalogQuestion.__table__,
    LevelDescription.__table__,
    InventoryAnswer.__table__,
    InventoryResult.__table__,
    CollaboratorProfile.__table__,
]


def _ensure_tables(conn: Connection) -> None:
    existing = set(inspect(conn).get_table_names())
    for table in INVENTORY_TABLES:
        if table.name in existing:
            logger.info("表 %s 已存在，跳过", table.name)
    Base.metadata.create_all(conn, tables=INVENTORY_TABLES, checkfirst=True)  # type:ignore[arg-type]


def _ensure_profile_pointer(conn: Connection) -> None:
    columns = {column["name"] for column in inspect(conn).get_columns("collaborator_profiles")}
    if "inventory_result_id" in columns:
        return
    logger.warning("检测到旧版数据库缺少列 collaborator_profiles.inventory_result_id，正在自动新增")
    conn.execute(
        text(
            "ALTER TABLE collaborator_profiles ADD COLUMN inventory_result_id INTEGER "
            "REFERENCES inventory_results(id) ON DELETE SET NULL"
        )
    )


LEGACY_LEVELS = {"low": "Low", "moderate": "Moderate", "high": "High"}


def _normalize_level_labels(conn: Connection) -> None:
    """旧版按枚举成员名（low/moderate/high）存储等级，统一改为 Low/Moderate/High。"""
    if conn.dialect.name == "postgresql":
        legacy_type = conn.execute(text("SELECT 1 FROM pg_type WHERE typname = 'levellabel'")).first()
        if legacy_type is None:
            return
        logger.warning("检测到旧版枚举类型 levellabel，正在重命名取值")
        for old, new in LEGACY_LEVELS.items():
            conn.execute(text(f"ALTER TYPE levellabel RENAME VALUE '{old}' TO '{new}'"))
        conn.execute(text("ALTER TYPE levellabel RENAME TO level_label"))
        return
    existing = set(inspect(conn).get_table_names())
    for table in ("level_descriptions", "inventory_results"):
        if table not in existing:
            continue
        for old, new in LEGACY_LEVELS.items():
            result = conn.execute(text(f"UPDATE {table} SET level = :new WHERE level = :old"), {"new": new, "old": old})
            if result.rowcount:
                logger.info("表 %s: 等级 %s -> %s，共 %d 行", table, old, new, result.rowcount)


async def ensure_inventory_tables() -> None:
    async with _engine.begin() as conn:
        # 先处理旧版等级取值，再建缺失的表
        await conn.run_sync(_normalize_level_labels)
        logger.info("检查测评相关表是否存在...")
        await conn.run_sync(_ensure_tables)
        await conn.run_sync(_ensure_profile_pointer)


async def main() -> None:
    try:
        logger.info(f"Starting migration against {config.db_url.split('@')[-1]}")
        await ensure_inventory_tables()
        logger.info("✅ Migration completed successfully")
    except Exception as e:
        logger.error(f"Migration failed: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await _engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
