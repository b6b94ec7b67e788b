from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

DataT = TypeVar("DataT")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ApiResponse(BaseModel, Generic[DataT]):
    """统一响应信封"""

    success: bool = Field(True, description="请求是否成功")
    message: str = Field("操作成功", description="提示信息")
    data: Optional[DataT] = Field(None, description="业务数据")
    timestamp: datetime = Field(default_factory=_utc_now, description="服务器时间(UTC)")


class ErrorDetail(BaseModel):
    """单个字段的校验错误"""

    field: str
    message: str
    value: Any = None


class ErrorResponse(BaseModel):
    """失败响应信封"""

    success: bool = False
    message: str
    error: str = Field(..., description="错误代码，例如 VALIDATION_ERROR")
    errors: Optional[list[ErrorDetail]] = Field(None, description="字段级错误列表")
    details: Optional[Any] = Field(None, description="调试信息，仅开发环境返回")
    retryable: bool = Field(False, description="客户端是否可以原样重试")
    data: None = None
    timestamp: datetime = Field(default_factory=_utc_now)


def success(data: DataT, message: str = "操作成功") -> ApiResponse[DataT]:
    return ApiResponse(success=True, message=message, data=data)
