"""structlog 配置模块

渲染模式与级别由 taskflow.core.config 读取（TASKFLOW_LOG_FORMAT / TASKFLOW_LOG_LEVEL）。
structlog 事件与标准库 logging 记录走同一条处理器链，统一附带 service 字段。
"""

import logging

import structlog
from structlog.types import EventDict, Processor, WrappedLogger
from taskflow.core.config import get_log_format, get_log_level

SERVICE_NAME = "taskflow-gateway"

# 本模块安装到 root logger 上的 handler 名，重复初始化时只替换它
HANDLER_NAME = "taskflow"

# 每条 SQL / 每个请求都会打日志的第三方 logger，至少提升到 WARNING
_NOISY_LOGGERS = ("aiosqlite", "uvicorn.access")


def add_service_name(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def build_processors(log_format: str) -> list[Processor]:
    """构建 structlog 与标准库 logging 共享的前置处理器链

    json 模式下异常转为结构化 traceback，dev 模式交给 ConsoleRenderer 渲染。
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_service_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        processors.append(structlog.processors.dict_tracebacks)
    return processors


def _build_renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog + 标准库 logging

    Args:
        log_format: "dev" 或 "json"，默认读取配置
        log_level: 根日志级别名，默认读取配置
    """
    log_format = log_format or get_log_format()
    log_level = (log_level or get_log_level()).upper()
    shared_processors = build_processors(log_format)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            _build_renderer(log_format),
        ],
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler()
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    for existing in [h for h in root_logger.handlers if h.get_name() == HANDLER_NAME]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root_logger.level))
