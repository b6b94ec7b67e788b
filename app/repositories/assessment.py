from __future__ import annotations

from typing import Iterable, Optional, Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.assessment import (
    CatalogQuestion,
    Dimension,
    InventoryAnswer,
    InventoryResult,
    LevelDescription,
    LevelLabel,
)


class AssessmentRepository:
    """自我破坏者测评的数据访问层。

    只负责查询与写入，不提交事务；事务边界由服务层控制。
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # --- 待答题目 ---
    def _pending_stmt(self, user_id: int):
        # 题库 LEFT JOIN 当前用户的作答，取作答为空的题目
        return (
            select(CatalogQuestion, Dimension)
            .join(Dimension, Dimension.id == CatalogQuestion.dimension_id)
            .outerjoin(
                InventoryAnswer,
                and_(InventoryAnswer.question_id == CatalogQuestion.id, InventoryAnswer.user_id == user_id),
            )
            .where(InventoryAnswer.id.is_(None))
        )

    async def list_pending_questions(self, user_id: int) -> list[tuple[CatalogQuestion, Dimension]]:
        stmt = self._pending_stmt(user_id).order_by(CatalogQuestion.id.asc())
        result = await self.session.execute(stmt)
        return [(question, dimension) for question, dimension in result.all()]

    async def count_pending_questions(self, user_id: int) -> int:
        stmt = select(func.count()).select_from(self._pending_stmt(user_id).subquery())
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def count_questions(self) -> int:
        result = await self.session.execute(select(func.count(CatalogQuestion.id)))
        return int(result.scalar_one())

    # --- 作答 ---
    async def get_answers_map(self, user_id: int, question_ids: Iterable[int]) -> dict[int, InventoryAnswer]:
        unique_ids = tuple(set(question_ids))
        if not unique_ids:
            return {}
        stmt = select(InventoryAnswer).where(
            InventoryAnswer.user_id == user_id,
            InventoryAnswer.question_id.in_(unique_ids),
        )
        result = await self.session.execute(stmt)
        return {answer.question_id: answer for answer in result.scalars().all()}

    async def upsert_answers(self, user_id: int, items: Sequence[tuple[int, int]]) -> None:
        """逐题写入作答：已存在则覆盖，否则新增。同一批次内重复的题目以最后一次为准。"""
        if not items:
            return
        existing = await self.get_answers_map(user_id, (question_id for question_id, _ in items))
        for question_id, response in items:
            answer = existing.get(question_id)
            if answer:
                answer.response = response
            else:
                answer = InventoryAnswer(user_id=user_id, question_id=question_id, response=response)
                self.session.add(answer)
                existing[question_id] = answer
        await self.session.flush()

    # --- 汇总 ---
    async def compute_dimension_means(self, user_id: int) -> list[tuple[int, float, int]]:
        """返回 (维度ID, 平均分, 作答数)，只包含用户至少答过一题的维度，按维度ID排序。"""
        stmt = (
            select(
                CatalogQuestion.dimension_id,
                func.avg(InventoryAnswer.response),
                func.count(InventoryAnswer.id),
            )
            .join(InventoryAnswer, InventoryAnswer.question_id == CatalogQuestion.id)
            .where(InventoryAnswer.user_id == user_id)
            .group_by(CatalogQuestion.dimension_id)
            .order_by(CatalogQuestion.dimension_id.asc())
        )
        result = await self.session.execute(stmt)
        return [(int(dimension_id), float(mean), int(count)) for dimension_id, mean, count in result.all()]

    async def get_level_description(self, dimension_id: int, level: LevelLabel) -> Optional[LevelDescription]:
        stmt = select(LevelDescription).where(
            LevelDescription.dimension_id == dimension_id,
            LevelDescription.level == level,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    # --- 结果 ---
    async def get_results_map(self, user_id: int) -> dict[int, InventoryResult]:
        stmt = select(InventoryResult).where(InventoryResult.user_id == user_id)
        result = await self.session.execute(stmt)
        return {row.dimension_id: row for row in result.scalars().all()}

    async def upsert_results(
        self,
        user_id: int,
        items: Sequence[tuple[int, float, LevelLabel, int]],
    ) -> list[InventoryResult]:
        """按 (用户, 维度) 写入汇总结果，items 为 (维度ID, 分数, 等级, 描述ID)。"""
        existing = await self.get_results_map(user_id)
        rows: list[InventoryResult] = []
        for dimension_id, score, level, description_id in items:
            row = existing.get(dimension_id)
            if row:
                row.score = score
                row.level = level
                row.description_id = description_id
            else:
                row = InventoryResult(
                    user_id=user_id,
                    dimension_id=dimension_id,
                    score=score,
                    level=level,
                    description_id=description_id,
                )
                self.session.add(row)
                existing[dimension_id] = row
            rows.append(row)
        await self.session.flush()
        return rows

    async def get_primary_result(self, user_id: int) -> Optional[InventoryResult]:
        """维度ID最小的那条结果，作为档案上的代表指针"""
        stmt = (
            select(InventoryResult)
            .where(InventoryResult.user_id == user_id)
            .order_by(InventoryResult.dimension_id.asc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def list_results(self, user_id: int) -> list[InventoryResult]:
        stmt = (
            select(InventoryResult)
            .where(InventoryResult.user_id == user_id)
            .order_by(InventoryResult.dimension_id.asc())
            .options(selectinload(InventoryResult.dimension), selectinload(InventoryResult.description))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # --- 题库概览 ---
    async def list_dimensions(self) -> list[Dimension]:
        stmt = (
            select(Dimension)
            .order_by(Dimension.id.asc())
            .options(selectinload(Dimension.questions), selectinload(Dimension.descriptions))
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())
