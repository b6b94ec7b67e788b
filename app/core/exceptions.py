"""测评流程的错误分类"""

from typing import Any, Optional

from fastapi import status


class AssessmentError(Exception):
    """测评业务错误基类，携带 HTTP 状态码与错误代码。"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationFailed(AssessmentError):
    """调用方参数错误，不会触发任何写操作"""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"


class ResultNotFound(AssessmentError):
    """尚未完成测评，没有可返回的结果"""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "RESULT_NOT_FOUND"


class ConsistencyError(AssessmentError):
    """参考数据缺失或分数越界。

    必须让整个事务回滚，不能降级为默认值，否则会写出与描述不一致的结果。
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "CONSISTENCY_ERROR"
