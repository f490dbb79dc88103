"""Taskflow Core -- 事务性任务生命周期引擎"""

from .engine import LifecycleEngine
from .state_machine import can_assign, decide

__all__ = [
    "LifecycleEngine",
    "can_assign",
    "decide",
]
