"""LoggingMiddleware -- 请求级日志

沿用上游传入的 X-Request-ID（否则生成 ULID），绑定到 structlog contextvars 并回写响应头。
请求结束日志按状态码分级：5xx 为 error，4xx 为 warning，其余为 info。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64


def resolve_request_id(incoming: str | None) -> str:
    """复用合法的上游 request_id，否则生成新的 ULID"""
    if incoming and len(incoming) <= MAX_REQUEST_ID_LENGTH and incoming.isprintable():
        return incoming
    return str(ULID())


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        start_time = time.monotonic()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = structlog.get_logger()

        try:
            response = await call_next(request)
        except Exception:
            await log.aexception("request_failed", elapsed_ms=_elapsed_ms(start_time))
            raise

        status_code = response.status_code
        if status_code >= 500:
            emit = log.aerror
        elif status_code >= 400:
            emit = log.awarning
        else:
            emit = log.ainfo
        await emit(
            "request_completed",
            status_code=status_code,
            elapsed_ms=_elapsed_ms(start_time),
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
