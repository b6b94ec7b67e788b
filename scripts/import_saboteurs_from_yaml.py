"""Utility script to import the saboteur inventory catalog from a YAML file into the database.

Usage examples
--------------
Run with default configuration (assets/saboteurs.yaml) and only create dimensions that do not yet exist::

    uv run python scripts/import_saboteurs_from_yaml.py

Rewrite the questions of existing dimensions (only allowed when no answers reference them)::

    uv run python scripts/import_saboteurs_from_yaml.py --force

Fail when any dimension lacks one of the Low / Moderate / High descriptions::

    uv run python scripts/import_saboteurs_from_yaml.py --strict
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT_PATH = Path(__file__).resolve().parents[1]
if str(ROOT_PATH) not in sys.path:
    sys.path.insert(0, str(ROOT_PATH))

from app.core.config import config  # noqa:E402
from app.core.logger import logger  # noqa:E402
from app.core.sql import async_session_maker, close_db, load_db  # noqa:E402
from app.services.catalog_service import import_catalog, load_yaml  # noqa:E402


async def async_main(args: argparse.Namespace) -> None:
    payload = load_yaml(Path(args.yaml_path))
    await load_db()

    try:
        async with async_session_maker() as session:
            total = await import_catalog(session, payload, force=args.force, strict=args.strict)
    finally:
        await close_db()

    logger.info("题库导入完成，共 %d 个维度 ✅", total)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="导入 YAML 自我破坏者测评题库到数据库")
    parser.add_argument(
        "--yaml-path",
        type=str,
        default=str(config.catalog_yaml_path),
        help="题库配置文件路径 (默认为 assets/saboteurs.yaml)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="若维度已存在，则强制覆盖其题目（当且仅当不存在作答记录时可用）",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="存在缺少等级描述的维度时中止导入",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(async_main(args))


if __name__ == "__main__":  # pragma: no cover
    main()
