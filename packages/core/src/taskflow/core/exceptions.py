"""生命周期引擎异常体系

所有核心错误以具名异常返回给调用方，核心层从不吞掉或自动重试。
是否重试（仅 VersionMismatchError）由调用方决定。
"""


class LifecycleError(Exception):
    """核心层基础异常"""

    code: str = "LIFECYCLE_ERROR"

    def __init__(self, message: str, retryable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            retryable: 调用方重新读取后重试是否可能成功
        """
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class TaskNotFoundError(LifecycleError):
    """任务不存在，或在给定 tenant/workspace 作用域下不可见"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class VersionMismatchError(LifecycleError):
    """条件写失败：存储中的 version 与期望值不一致

    调用方可重新读取最新 version 后重试。
    """

    code = "VERSION_MISMATCH"

    def __init__(
        self,
        task_id: str,
        expected_version: int,
        actual_version: int | None = None,
    ) -> None:
        message = f"Version mismatch for task {task_id}: expected {expected_version}"
        if actual_version is not None:
            message += f", found {actual_version}"
        super().__init__(message, retryable=True)
        self.task_id = task_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class InvalidStateError(LifecycleError):
    """任务已处于终态，拒绝任何变更"""

    code = "INVALID_STATE"

    def __init__(self, task_id: str, state: str) -> None:
        super().__init__(f"Task {task_id} is already in terminal state: {state}")
        self.task_id = task_id
        self.state = state


class UnauthorizedError(LifecycleError):
    """角色无权执行该操作"""

    code = "FORBIDDEN"


class InvalidTransitionError(UnauthorizedError):
    """状态机拒绝：非法边、角色不符或 agent 不是负责人"""

    code = "INVALID_TRANSITION"

    def __init__(self, from_state: str, to_state: str, role: str) -> None:
        super().__init__(
            f"Transition {from_state} -> {to_state} is not allowed for role {role}"
        )
        self.from_state = from_state
        self.to_state = to_state
        self.role = role


class IdempotencyConflictError(LifecycleError):
    """事务内写入幂等记录时发现 key 已存在

    写入被拒绝且整个事务回滚；引擎回查已缓存的响应。
    """

    code = "IDEMPOTENCY_CONFLICT"

    def __init__(self, key: str) -> None:
        super().__init__(f"Idempotency key already recorded: {key}")
        self.key = key


class StoreBusyError(LifecycleError):
    """在 busy_timeout 内未能取得数据库写锁

    原子单元未开始或已整体回滚，调用方可稍后重试。
    """

    code = "STORE_BUSY"

    def __init__(self, busy_timeout_ms: int) -> None:
        super().__init__(
            f"Database write lock not acquired within {busy_timeout_ms} ms",
            retryable=True,
        )
        self.busy_timeout_ms = busy_timeout_ms
