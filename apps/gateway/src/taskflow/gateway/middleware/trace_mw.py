"""TraceMiddleware -- 为任务操作绑定租户与任务上下文

从 X-Tenant-Id 请求头和 /workspaces/{ws}/tasks/{task_id} 路径中提取标识，
贯穿该请求内的所有日志。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


def extract_scope(path: str) -> dict[str, str]:
    """从路径中提取 workspace_id / task_id"""
    scope: dict[str, str] = {}
    parts = [p for p in path.split("/") if p]
    for i, part in enumerate(parts[:-1]):
        if part == "workspaces":
            scope["workspace_id"] = parts[i + 1]
        elif part == "tasks":
            scope["task_id"] = parts[i + 1]
    return scope


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        context = extract_scope(request.url.path)
        tenant_id = request.headers.get("x-tenant-id")
        if tenant_id:
            context["tenant_id"] = tenant_id

        if context:
            structlog.contextvars.bind_contextvars(**context)

        return await call_next(request)
