"""
Координатор пула воркеров.
"""

import threading
import time
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .channel import Channel
from .worker_manager import WorkerManager, TaskHandler, simulated_work
from ..models.task import Task
from ..models.worker import Worker
from ..utils.config import PoolConfig
from ..utils.logger import get_logger
from ..exceptions import ChannelTimeoutError, WorkerPoolError


logger = get_logger(__name__)


class PoolStatus(Enum):
    """Статусы пула."""
    STOPPED = "stopped"
    RUNNING = "running"
    COLLECTING = "collecting"
    COMPLETED = "completed"
    ERROR = "error"


class WorkerPool:
    """
    Пул воркеров с каналом задач и каналом результатов.

    Пул одноразовый: start -> submit ... -> close_and_collect.
    Гарантируется только количество результатов, порядок не определен.
    """

    def __init__(self, config: Optional[PoolConfig] = None, handler: Optional[TaskHandler] = None):
        self.config = config or PoolConfig()
        self._handler = handler or simulated_work(self.config.work_duration)
        self._lock = threading.Lock()
        self._status = PoolStatus.STOPPED

        self._task_channel: Channel[Task] = Channel(self.config.task_capacity, name="tasks")
        self._result_channel: Channel[Task] = Channel(self.config.result_capacity, name="results")
        self._worker_manager = WorkerManager(self._task_channel, self._result_channel, self._handler)

        # Продюсеры выстраиваются в цепочку, чтобы сохранить порядок между вызовами submit
        self._producer: Optional[threading.Thread] = None
        self._submitted = 0

        logger.debug(f"WorkerPool initialized with config: {self.config}")

    def start(self, num_workers: Optional[int] = None):
        """
        Запуск ровно num_workers воркеров.

        Args:
            num_workers: Количество воркеров, по умолчанию из конфигурации
        """
        with self._lock:
            if self._status != PoolStatus.STOPPED:
                raise WorkerPoolError(f"Pool is not stopped (current status: {self._status.value})")

            count = num_workers if num_workers is not None else self.config.resolve_num_workers()
            self._worker_manager.start(count)
            self._status = PoolStatus.RUNNING

        logger.info(f"WorkerPool started with {count} workers")

    def submit(self, tasks: Iterable[Task]) -> int:
        """
        Отправка задач в канал в исходном порядке.

        Отправка идет в отдельном потоке-продюсере, чтобы заполненный канал
        результатов не блокировал вызывающего до начала сбора.

        Args:
            tasks: Задачи для отправки

        Returns:
            Количество принятых задач
        """
        tasks = list(tasks)
        for task in tasks:
            if not isinstance(task, Task):
                raise TypeError(f"Expected Task, got {type(task).__name__}")

        with self._lock:
            if self._status != PoolStatus.RUNNING:
                raise WorkerPoolError(f"Pool is not running (current status: {self._status.value})")

            previous = self._producer
            self._producer = threading.Thread(
                target=self._produce,
                args=(tasks, previous),
                name="task-producer",
                daemon=True
            )
            self._submitted += len(tasks)
            self._producer.start()

        return len(tasks)

    def _produce(self, tasks: List[Task], previous: Optional[threading.Thread]):
        """Последовательная отправка задач после предыдущего продюсера."""
        if previous is not None:
            previous.join()

        logger.info("Sending tasks to workers...")
        for task in tasks:
            logger.info(f"Sending task {task.id} to workers")
            self._task_channel.send(task)
            if self.config.send_interval > 0:
                time.sleep(self.config.send_interval)

    def _close_after_producers(self):
        """Закрытие канала задач после того, как все продюсеры закончили."""
        with self._lock:
            producer = self._producer

        if producer is not None:
            producer.join()

        self._task_channel.close()

    def close_and_collect(self, timeout: Optional[float] = None) -> List[Task]:
        """
        Закрытие канала задач и сбор ровно стольких результатов, сколько задач отправлено.

        Args:
            timeout: Таймаут ожидания каждого результата

        Returns:
            Обработанные задачи в порядке завершения
        """
        # Фиксация числа ожидаемых результатов
        with self._lock:
            if self._status != PoolStatus.RUNNING:
                raise WorkerPoolError(f"Pool is not running (current status: {self._status.value})")
            self._status = PoolStatus.COLLECTING
            expected = self._submitted

        # Канал задач закроется после всех продюсеров
        closer = threading.Thread(target=self._close_after_producers, name="task-closer", daemon=True)
        closer.start()

        logger.info("Collecting results from workers...")
        results: List[Task] = []
        # Сбор ровно expected результатов
        try:
            for _ in range(expected):
                result = self._result_channel.receive(timeout=timeout)
                logger.info(f"Task {result.id} has been processed by a worker")
                results.append(result)
        except ChannelTimeoutError as e:
            with self._lock:
                self._status = PoolStatus.ERROR
            raise WorkerPoolError(
                f"Timed out collecting results: {len(results)}/{expected} received"
            ) from e

        # Ожидание завершения воркеров
        closer.join()
        self._worker_manager.join()

        with self._lock:
            self._status = PoolStatus.COMPLETED

        logger.info("All tasks completed!")
        return results

    def run(
        self,
        tasks: Iterable[Task],
        num_workers: Optional[int] = None,
        timeout: Optional[float] = None
    ) -> List[Task]:
        """Запуск, отправка и сбор за один вызов."""
        self.start(num_workers)
        self.submit(tasks)
        return self.close_and_collect(timeout=timeout)

    def get_status(self) -> PoolStatus:
        """Получение статуса пула."""
        return self._status

    def is_running(self) -> bool:
        """Проверка работы пула."""
        return self._status == PoolStatus.RUNNING

    def get_submitted_count(self) -> int:
        return self._submitted

    def get_workers(self) -> List[Worker]:
        """Получение списка воркеров."""
        return self._worker_manager.get_workers()

    def get_worker_count(self) -> int:
        return len(self._worker_manager.get_workers())

    def get_metrics(self) -> Dict[str, Any]:
        """Получение метрик пула."""
        return {
            'status': self._status.value,
            'tasks_submitted': self._submitted,
            'task_channel': self._task_channel.get_metrics(),
            'result_channel': self._result_channel.get_metrics(),
            'workers': self._worker_manager.get_worker_stats()
        }

    def __enter__(self):
        """Контекстный менеджер - вход."""
        if self._status == PoolStatus.STOPPED:
            self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Контекстный менеджер - выход: несобранные задачи дособираются."""
        if exc_type is None and self._status == PoolStatus.RUNNING:
            self.close_and_collect()

    def __repr__(self) -> str:
        return (f"WorkerPool(status={self._status.value}, "
                f"workers={self.get_worker_count()}, "
                f"submitted={self._submitted})")
