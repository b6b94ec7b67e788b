"""自我破坏者测评题库导入：维度、题目与等级描述"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple

import yaml
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logger import logger
from app.core.sql import transaction
from app.models.assessment import (
    CatalogQuestion,
    Dimension,
    InventoryAnswer,
    LevelDescription,
    LevelLabel,
)


def load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"YAML 文件不存在: {path}")
    with path.open("r", encoding="utf-8") as fp:
        data = yaml.safe_load(fp)
    if not isinstance(data, dict) or not isinstance(data.get("dimensions"), dict):
        raise ValueError("题库配置文件的根节点必须包含 dimensions 字典")
    return data


def parse_levels(code: str, payload: Any) -> dict[LevelLabel, str]:
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValueError(f"维度 {code!r} 的 levels 字段必须是字典")
    levels: dict[LevelLabel, str] = {}
    for raw_label, text in payload.items():
        try:
            label = LevelLabel(raw_label)
        except ValueError as exc:
            raise ValueError(f"维度 {code!r} 的等级 {raw_label!r} 无效，应为 Low / Moderate / High") from exc
        if not text:
            raise ValueError(f"维度 {code!r} 的等级 {raw_label!r} 缺少描述")
        levels[label] = str(text)
    return levels


async def import_dimension(
    session: AsyncSession,
    *,
    code: str,
    payload: Dict[str, Any],
    force: bool,
) -> Tuple[Dimension, bool]:
    """Create or update one dimension, its questions and level descriptions.

    Returns the dimension and a flag that indicates whether it was newly created.
    """

    name = payload.get("name")
    if not name:
        raise ValueError(f"维度节点 {code!r} 缺少 name 字段")

    questions = payload.get("questions") or []
    if not isinstance(questions, list) or not all(isinstance(item, str) and item for item in questions):
        raise ValueError(f"维度 {name!r} 的 questions 字段必须是非空字符串列表")
    levels = parse_levels(code, payload.get("levels"))

    result = await session.execute(select(Dimension).where(Dimension.code == code))
    dimension = result.scalars().first()

    created = False
    if dimension is None:
        dimension = Dimension(code=code, name=name, image_url=payload.get("image_url"))
        session.add(dimension)
        await session.flush()
        created = True
    else:
        dimension.name = name
        dimension.image_url = payload.get("image_url")

    # 描述 ID 会被测评结果引用，只能原地更新
    description_rows = await session.execute(
        select(LevelDescription).where(LevelDescription.dimension_id == dimension.id)
    )
    existing_levels = {row.level: row for row in description_rows.scalars().all()}
    for label, text in levels.items():
        row = existing_levels.get(label)
        if row:
            row.description = text
        else:
            session.add(LevelDescription(dimension_id=dimension.id, level=label, description=text))

    missing = [label.value for label in LevelLabel if label not in levels and label not in existing_levels]
    if missing:
        logger.warning("维度 %s 缺少等级描述: %s", name, ", ".join(missing))

    if not created:
        question_rows = await session.execute(
            select(CatalogQuestion.id).where(CatalogQuestion.dimension_id == dimension.id)
        )
        question_ids = list(question_rows.scalars().all())
        if question_ids and not force:
            await session.flush()
            logger.info("跳过维度 %s 的题目：已存在，可使用 --force 覆盖", name)
            return dimension, False
        if question_ids:
            answered = await session.execute(
                select(func.count(InventoryAnswer.id)).where(InventoryAnswer.question_id.in_(question_ids))
            )
            if answered.scalar_one():
                raise RuntimeError(f"维度 {name!r} 的题目已有作答记录，出于安全考虑不允许强制覆盖。")
            await session.execute(delete(CatalogQuestion).where(CatalogQuestion.id.in_(question_ids)))

    for title in questions:
        session.add(CatalogQuestion(dimension_id=dimension.id, title=title))
    await session.flush()

    logger.info("维度 %s 导入完成，共导入 %d 道题目", name, len(questions))
    return dimension, created


async def find_incomplete_dimensions(session: AsyncSession) -> list[str]:
    """列出没有配齐三个等级描述的维度，这些维度在汇总时会失败。"""
    stmt = (
        select(Dimension.name, func.count(LevelDescription.id))
        .outerjoin(LevelDescription, LevelDescription.dimension_id == Dimension.id)
        .group_by(Dimension.id, Dimension.name)
        .order_by(Dimension.id)
    )
    rows = (await session.execute(stmt)).all()
    return [name for name, count in rows if count < len(LevelLabel)]


async def import_catalog(session: AsyncSession, payload: Dict[str, Any], *, force: bool, strict: bool) -> int:
    """在一个事务里导入整份题库，返回处理的维度数量。

    Raises:
        ValueError: 配置格式错误。
        RuntimeError: 强制覆盖已有作答的题目，或 strict 模式下存在缺少描述的维度。
    """
    imported = 0
    async with transaction(session):
        for code, dimension_payload in payload["dimensions"].items():
            if not isinstance(dimension_payload, dict):
                raise ValueError(f"维度节点 {code!r} 必须是对象")
            await import_dimension(session, code=str(code), payload=dimension_payload, force=force)
            imported += 1

        incomplete = await find_incomplete_dimensions(session)
        if incomplete and strict:
            raise RuntimeError(f"以下维度缺少等级描述: {', '.join(incomplete)}")
    return imported
