from __future__ import annotations

from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConsistencyError, ResultNotFound, ValidationFailed
from app.core.logger import logger
from app.core.sql import transaction
from app.models.assessment import InventoryResult, LevelLabel
from app.repositories.assessment import AssessmentRepository
from app.repositories.profile import ProfileRepository
from app.schemas.assessment import (
    DimensionOverview,
    DimensionResult,
    InventoryAnswerItem,
    InventoryAnswerRequest,
    InventoryAnswerResult,
    InventoryResultData,
    PendingQuestion,
    PendingQuestionsData,
)
from app.services.level_classifier import SCORE_MAX, SCORE_MIN, classify_score


class AssessmentService:
    def __init__(self, session: AsyncSession) -> None:
        """初始化自我破坏者测评服务。

        Args:
            session: SQLAlchemy 异步会话，一个请求对应一个会话。
        """
        self.session = session
        self.repo = AssessmentRepository(session)
        self.profile_repo = ProfileRepository(session)

    async def get_pending_questions(self, user_id: int) -> PendingQuestionsData:
        """返回用户尚未作答的题目（按题库顺序）。"""
        rows = await self.repo.list_pending_questions(user_id)
        total_questions = await self.repo.count_questions()
        pending = [
            PendingQuestion(
                question_id=question.id,
                title=question.title,
                dimension_id=dimension.id,
                dimension=dimension.name,
                image_url=dimension.image_url,
            )
            for question, dimension in rows
        ]
        return PendingQuestionsData(
            user_id=user_id,
            pending_questions=pending,
            total_pending=len(pending),
            total_questions=total_questions,
        )

    async def submit_answers(self, request: InventoryAnswerRequest) -> InventoryAnswerResult:
        """保存一批作答，并在答完全部题目时重新计算结果。

        作答写入、完成判定、汇总计算与档案指针更新在同一个事务里完成，
        其中任何一步失败都会回滚整批作答。

        Args:
            request: 包含用户 ID 与作答列表的请求体。

        Returns:
            InventoryAnswerResult: 保存数量与是否已完成。

        Raises:
            ValidationFailed: 作答为空或取值不在 1-5 之间。
            ConsistencyError: 缺少等级描述或分数越界。
            SQLAlchemyError: 数据库错误（包括题目不存在导致的外键冲突）。
        """
        self._validate_batch(request.answers)
        user_id = request.user_id
        items = [(item.question_id, item.response) for item in request.answers]

        async with transaction(self.session):
            await self.repo.upsert_answers(user_id, items)
            pending_count = await self.repo.count_pending_questions(user_id)
            completed = pending_count == 0
            if completed:
                await self.aggregate_results(user_id)

        logger.info("用户 %s 保存作答 %d 条，完成状态 %s", user_id, len(items), completed)
        return InventoryAnswerResult(user_id=user_id, saved_count=len(items), completed=completed)

    async def aggregate_results(self, user_id: int) -> list[InventoryResult]:
        """按维度重新计算平均分、等级与描述，写入结果并更新档案指针。

        调用方负责事务；这里只 flush 不提交。
        """
        means = await self.repo.compute_dimension_means(user_id)
        items: list[tuple[int, float, LevelLabel, int]] = []
        for dimension_id, score, _ in means:
            level = classify_score(score)
            description = await self.repo.get_level_description(dimension_id, level)
            if description is None:
                raise ConsistencyError(f"维度 {dimension_id} 缺少等级 {level.value} 的描述")
            items.append((dimension_id, score, level, description.id))

        rows = await self.repo.upsert_results(user_id, items)
        logger.info("用户 %s 测评结果已更新，共 %d 个维度", user_id, len(rows))

        primary = await self.repo.get_primary_result(user_id)
        if primary is not None:
            await self.profile_repo.set_inventory_result(user_id, primary.id)
            logger.info("用户 %s 档案指向测评结果 %s", user_id, primary.id)
        return rows

    async def get_results(self, user_id: int) -> InventoryResultData:
        """读取已保存的测评结果。

        Raises:
            ResultNotFound: 用户尚未完成测评。
        """
        rows = await self.repo.list_results(user_id)
        if not rows:
            raise ResultNotFound("未找到测评结果，请先完成测评")
        results = [
            DimensionResult(
                result_id=row.id,
                dimension_id=row.dimension_id,
                dimension=row.dimension.name,
                score=row.score,
                level=row.level.value,
                description=row.description.description,
            )
            for row in rows
        ]
        return InventoryResultData(user_id=user_id, results=results, total_dimensions=len(results))

    async def list_dimensions(self) -> list[DimensionOverview]:
        dimensions = await self.repo.list_dimensions()
        return [
            DimensionOverview(
                dimension_id=dimension.id,
                code=dimension.code,
                name=dimension.name,
                image_url=dimension.image_url,
                question_count=len(dimension.questions),
                levels=[
                    label.value
                    for label in LevelLabel
                    if any(description.level == label for description in dimension.descriptions)
                ],
            )
            for dimension in dimensions
        ]

    @staticmethod
    def _validate_batch(answers: Sequence[InventoryAnswerItem]) -> None:
        if not answers:
            raise ValidationFailed("作答列表不能为空")
        for item in answers:
            if not SCORE_MIN <= item.response <= SCORE_MAX:
                raise ValidationFailed("作答值必须是 1 到 5 之间的整数", details={"question_id": item.question_id})
