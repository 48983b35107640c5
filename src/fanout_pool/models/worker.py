"""
Модель воркера.
"""

from enum import Enum
from typing import Optional
from dataclasses import dataclass, field
from datetime import datetime
from threading import Lock


class WorkerStatus(Enum):
    """Статусы воркеров."""
    IDLE = "idle"
    PROCESSING = "processing"
    TERMINATED = "terminated"


@dataclass
class Worker:
    """
    Представление воркера.

    Идентичность неизменна, между задачами воркер состояния не хранит.
    Статус нужен только для наблюдения: IDLE -> PROCESSING -> IDLE -> ... -> TERMINATED.
    """

    id: int
    status: WorkerStatus = WorkerStatus.IDLE
    tasks_processed: int = 0
    started_at: Optional[datetime] = None
    stopped_at: Optional[datetime] = None
    _lock: Lock = field(default_factory=Lock, repr=False, compare=False)

    @property
    def name(self) -> str:
        return f"worker-{self.id}"

    def start(self):
        """Запуск воркера."""
        with self._lock:
            self.status = WorkerStatus.IDLE
            self.started_at = datetime.now()

    def set_processing(self):
        """Переход IDLE -> PROCESSING."""
        with self._lock:
            if self.status == WorkerStatus.IDLE:
                self.status = WorkerStatus.PROCESSING

    def set_idle(self):
        """Переход PROCESSING -> IDLE."""
        with self._lock:
            if self.status == WorkerStatus.PROCESSING:
                self.status = WorkerStatus.IDLE
                self.tasks_processed += 1

    def terminate(self):
        """Завершение работы воркера."""
        with self._lock:
            self.status = WorkerStatus.TERMINATED
            self.stopped_at = datetime.now()

    def is_terminated(self) -> bool:
        return self.status == WorkerStatus.TERMINATED

    def get_uptime(self) -> float:
        """Получение времени работы."""
        if not self.started_at:
            return 0.0
        end = self.stopped_at or datetime.now()
        return (end - self.started_at).total_seconds()
