"""异常到统一响应信封的映射"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import config
from app.core.exceptions import AssessmentError
from app.core.logger import logger
from app.schemas.response import ErrorDetail, ErrorResponse


def error_response(
    status_code: int,
    *,
    message: str,
    error: str,
    errors: Optional[list[ErrorDetail]] = None,
    details: Optional[Any] = None,
    retryable: bool = False,
) -> JSONResponse:
    payload = ErrorResponse(
        message=message,
        error=error,
        errors=errors,
        details=details,
        retryable=retryable,
    )
    return JSONResponse(status_code=status_code, content=jsonable_encoder(payload))


def _field_name(loc: tuple[Any, ...]) -> str:
    # 去掉 body / path / query 前缀
    parts = loc[1:] if loc and loc[0] in {"body", "path", "query"} else loc
    return ".".join(str(part) for part in parts) or "body"


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        ErrorDetail(
            field=_field_name(tuple(item.get("loc", ()))),
            message=item.get("msg", ""),
            value=jsonable_encoder(item.get("input"), custom_encoder={bytes: lambda raw: raw.decode(errors="replace")}),
        )
        for item in exc.errors()
    ]
    error_code = "VALIDATION_ERROR"
    if errors and errors[0].field == "user_id":
        error_code = "MISSING_USER_ID"
    message = errors[0].message if errors else "请求参数无效"
    return error_response(status.HTTP_400_BAD_REQUEST, message=message, error=error_code, errors=errors)


async def assessment_error_handler(request: Request, exc: AssessmentError) -> JSONResponse:
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("测评流程内部错误 %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, message=exc.message, error=exc.error_code, details=exc.details)


async def storage_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("数据库操作失败 %s %s", request.method, request.url.path)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="数据库暂时不可用，请稍后重试",
        error="STORAGE_ERROR",
        details=str(exc) if config.expose_error_details else None,
        retryable=True,
    )


async def storage_timeout_handler(request: Request, exc: TimeoutError) -> JSONResponse:
    # 驱动层超时（如 asyncpg command_timeout）不会被包装成 SQLAlchemyError
    logger.warning("数据库操作超时 %s %s", request.method, request.url.path)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="数据库操作超时，请稍后重试",
        error="STORAGE_ERROR",
        details=repr(exc) if config.expose_error_details else None,
        retryable=True,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("未处理的异常 %s %s", request.method, request.url.path)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="服务器内部错误",
        error="INTERNAL_ERROR",
        details=repr(exc) if config.expose_error_details else None,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type:ignore[arg-type]
    app.add_exception_handler(AssessmentError, assessment_error_handler)  # type:ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)  # type:ignore[arg-type]
    app.add_exception_handler(TimeoutError, storage_timeout_handler)  # type:ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
