"""
Модели данных.
"""

from .task import Task
from .worker import Worker, WorkerStatus
from .health import HealthCheckTarget, HealthCheckResult, HealthStatus

__all__ = [
    "Task",
    "Worker",
    "WorkerStatus",
    "HealthCheckTarget",
    "HealthCheckResult",
    "HealthStatus"
]
