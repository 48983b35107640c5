"""
Конкурентный пул воркеров на каналах и сервис параллельной проверки здоровья.

Основные компоненты:
- Channel: ограниченный FIFO-канал с закрытием
- WorkerPool: фиксированный пул воркеров с каналами задач и результатов
- ProbeDispatcher: fan-out/fan-in проверка пачки адресов
- create_app: Flask-приложение с маршрутом POST /health-check
"""

from .core.channel import Channel
from .core.worker_pool import WorkerPool, PoolStatus
from .core.probe import Probe
from .core.dispatcher import ProbeDispatcher
from .models.task import Task
from .models.worker import Worker, WorkerStatus
from .models.health import HealthCheckTarget, HealthCheckResult, HealthStatus
from .utils.config import Config, load_config
from .utils.logger import get_logger
from .exceptions import (
    FanoutPoolError,
    ChannelError,
    ChannelClosedError,
    ChannelTimeoutError,
    WorkerPoolError,
    InvalidRequestError,
    ConfigurationError
)

__version__ = "1.0.0"

__all__ = [
    "Channel",
    "WorkerPool",
    "PoolStatus",
    "Probe",
    "ProbeDispatcher",
    "Task",
    "Worker",
    "WorkerStatus",
    "HealthCheckTarget",
    "HealthCheckResult",
    "HealthStatus",
    "Config",
    "load_config",
    "get_logger",
    "FanoutPoolError",
    "ChannelError",
    "ChannelClosedError",
    "ChannelTimeoutError",
    "WorkerPoolError",
    "InvalidRequestError",
    "ConfigurationError"
]
