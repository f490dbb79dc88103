"""异常 -> HTTP 响应映射

统一错误响应格式：{"error": {"code": ..., "message": ...}}
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from starlette.responses import JSONResponse
from taskflow.core.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    LifecycleError,
    StoreBusyError,
    TaskNotFoundError,
    UnauthorizedError,
    VersionMismatchError,
)

log = structlog.get_logger()

# 按 MRO 顺序匹配，子类在前
_STATUS_CODES: list[tuple[type[LifecycleError], int]] = [
    (TaskNotFoundError, 404),
    (VersionMismatchError, 409),
    (InvalidStateError, 409),
    (InvalidTransitionError, 409),
    (UnauthorizedError, 403),
    (StoreBusyError, 503),
]


def error_response(
    status_code: int,
    code: str,
    message: str | list[dict[str, Any]],
) -> JSONResponse:
    """构建统一错误响应"""
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


def status_for(error: LifecycleError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


async def lifecycle_error_handler(request: Request, exc: LifecycleError) -> JSONResponse:
    status_code = status_for(exc)
    await log.ainfo(
        "lifecycle_error",
        code=exc.code,
        status_code=status_code,
        retryable=exc.retryable,
    )
    response = error_response(status_code, exc.code, exc.message)
    if isinstance(exc, StoreBusyError):
        response.headers["Retry-After"] = "1"
    return response


async def validation_error_handler(
    request: Request,
    exc: RequestValidationError | ValidationError,
) -> JSONResponse:
    errors = [
        {"loc": list(err.get("loc", [])), "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    return error_response(400, "VALIDATION_ERROR", errors)


def register_error_handlers(app: FastAPI) -> None:
    """注册核心异常与校验异常的处理器"""
    app.add_exception_handler(LifecycleError, lifecycle_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
