"""
Основные компоненты: канал, воркеры, координатор пула и диспетчер проб.
"""

from .channel import Channel
from .worker_manager import WorkerManager, simulated_work
from .worker_pool import WorkerPool, PoolStatus
from .probe import Probe
from .dispatcher import ProbeDispatcher

__all__ = [
    "Channel",
    "WorkerManager",
    "simulated_work",
    "WorkerPool",
    "PoolStatus",
    "Probe",
    "ProbeDispatcher"
]
