from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession

from app.deps.sql import get_db
from app.schemas.assessment import (
    DimensionOverview,
    InventoryAnswerRequest,
    InventoryAnswerResult,
    InventoryResultData,
    PendingQuestionsData,
)
from app.schemas.response import ApiResponse, success
from app.services.assessment_service import AssessmentService

router = APIRouter()


@router.get("/dimensions", response_model=ApiResponse[list[DimensionOverview]])
async def list_dimensions(db: AsyncSession = Depends(get_db)) -> ApiResponse[list[DimensionOverview]]:
    service = AssessmentService(db)
    return success(await service.list_dimensions(), "维度列表获取成功")


@router.get("/{user_id}/pending", response_model=ApiResponse[PendingQuestionsData])
async def get_pending_questions(
    user_id: int = Path(..., ge=1, description="用户ID"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[PendingQuestionsData]:
    service = AssessmentService(db)
    return success(await service.get_pending_questions(user_id), "待答题目获取成功")


@router.post("/answers", response_model=ApiResponse[InventoryAnswerResult])
async def submit_answers(
    request: InventoryAnswerRequest,
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[InventoryAnswerResult]:
    service = AssessmentService(db)
    return success(await service.submit_answers(request), "作答保存成功")


@router.get("/{user_id}/result", response_model=ApiResponse[InventoryResultData])
async def get_result(
    user_id: int = Path(..., ge=1, description="用户ID"),
    db: AsyncSession = Depends(get_db),
) -> ApiResponse[InventoryResultData]:
    service = AssessmentService(db)
    return success(await service.get_results(user_id), "测评结果获取成功")
