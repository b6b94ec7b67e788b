from typing import List, Optional

from pydantic import BaseModel, Field


class InventoryAnswerItem(BaseModel):
    """单题作答"""

    question_id: int = Field(..., ge=1, strict=True, description="题目ID", examples=[1])
    response: int = Field(..., ge=1, le=5, strict=True, description="作答值，1-5 的整数", examples=[4])


class InventoryAnswerRequest(BaseModel):
    """提交作答请求体"""

    user_id: int = Field(..., ge=1, strict=True, description="用户ID", examples=[42])
    answers: List[InventoryAnswerItem] = Field(..., min_length=1, description="作答列表，不能为空")


class InventoryAnswerResult(BaseModel):
    """提交作答的处理结果"""

    user_id: int
    saved_count: int = Field(..., description="本次保存的作答数量")
    completed: bool = Field(..., description="提交后是否已答完全部题目")


class PendingQuestion(BaseModel):
    """待作答的题目"""

    question_id: int
    title: str
    dimension_id: int
    dimension: str = Field(..., description="维度名称")
    image_url: Optional[str] = Field(None, description="维度配图URL")


class PendingQuestionsData(BaseModel):
    user_id: int
    pending_questions: List[PendingQuestion]
    total_pending: int
    total_questions: int


class DimensionResult(BaseModel):
    """单个维度的测评结果"""

    result_id: int
    dimension_id: int
    dimension: str
    score: float = Field(..., description="平均分(未取整)")
    level: str = Field(..., description="等级 Low / Moderate / High")
    description: str


class InventoryResultData(BaseModel):
    user_id: int
    results: List[DimensionResult]
    total_dimensions: int


class DimensionOverview(BaseModel):
    """题库中的维度概览"""

    dimension_id: int
    code: str
    name: str
    image_url: Optional[str] = None
    question_count: int
    levels: List[str] = Field(default_factory=list, description="已配置描述的等级")
