"""日志配置测试

测试内容：
1. 级别与渲染模式从环境变量读取
2. 重复初始化只保留一个 taskflow handler
3. 所有事件附带 service 字段，json 模式输出单行 JSON
"""

import json
import logging

import pytest
import structlog
from taskflow.gateway.middleware.logging_config import (
    HANDLER_NAME,
    SERVICE_NAME,
    add_service_name,
    build_processors,
    setup_logging,
)


def _taskflow_handlers() -> list[logging.Handler]:
    return [h for h in logging.getLogger().handlers if h.get_name() == HANDLER_NAME]


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging("dev", "INFO")


class TestSetupLogging:
    def test_reads_config_from_env(self, monkeypatch):
        monkeypatch.setenv("TASKFLOW_LOG_FORMAT", "json")
        monkeypatch.setenv("TASKFLOW_LOG_LEVEL", "warning")
        setup_logging()

        assert logging.getLogger().level == logging.WARNING
        [handler] = _taskflow_handlers()
        assert isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)
        assert isinstance(
            handler.formatter.processors[-1], structlog.processors.JSONRenderer
        )

    def test_repeated_setup_keeps_one_handler(self):
        setup_logging("dev", "INFO")
        setup_logging("json", "INFO")
        assert len(_taskflow_handlers()) == 1

    def test_noisy_loggers_quieted(self):
        setup_logging("dev", "DEBUG")
        assert logging.getLogger("aiosqlite").level == logging.WARNING

    def test_json_output_carries_service_and_context(self, capsys):
        setup_logging("json", "INFO")
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(task_id="T1")
        try:
            structlog.get_logger("taskflow.test").info("task_created", tenant_id="tenant_1")
        finally:
            structlog.contextvars.clear_contextvars()

        lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
        record = json.loads(lines[-1])
        assert record["event"] == "task_created"
        assert record["service"] == SERVICE_NAME
        assert record["task_id"] == "T1"
        assert record["level"] == "info"


class TestProcessors:
    def test_service_name_does_not_override(self):
        assert add_service_name(None, "info", {"event": "x"})["service"] == SERVICE_NAME
        assert add_service_name(None, "info", {"service": "cli"})["service"] == "cli"

    def test_json_mode_renders_tracebacks_as_dicts(self):
        assert structlog.processors.dict_tracebacks in build_processors("json")
        assert structlog.processors.dict_tracebacks not in build_processors("dev")
