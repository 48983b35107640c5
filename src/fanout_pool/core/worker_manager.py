"""
Менеджер воркеров: фиксированный набор потоков над общими каналами.
"""

import threading
import time
from typing import Callable, Dict, List, Optional, Any

from .channel import Channel
from ..models.task import Task
from ..models.worker import Worker, WorkerStatus
from ..utils.logger import get_logger
from ..exceptions import WorkerPoolError


logger = get_logger(__name__)

TaskHandler = Callable[[Task], None]


def simulated_work(duration: float) -> TaskHandler:
    """Обработчик, имитирующий работу задержкой."""
    def handler(task: Task):
        time.sleep(duration)
    return handler


class WorkerManager:
    """
    Запускает N воркеров, читающих один канал задач и пишущих в один канал результатов.

    Воркер завершается сам, когда канал задач закрыт и опустошен.
    """

    def __init__(
        self,
        task_channel: Channel[Task],
        result_channel: Channel[Task],
        handler: TaskHandler
    ):
        self._task_channel = task_channel
        self._result_channel = result_channel
        self._handler = handler
        self._workers: List[Worker] = []
        self._worker_threads: Dict[int, threading.Thread] = {}
        self._lock = threading.Lock()

    def start(self, num_workers: int):
        """
        Запуск ровно num_workers воркеров.

        Args:
            num_workers: Количество воркеров, не меньше 1
        """
        if num_workers < 1:
            raise WorkerPoolError(f"num_workers must be >= 1, got {num_workers}")

        with self._lock:
            if self._workers:
                raise WorkerPoolError("Workers already started")

            for worker_id in range(1, num_workers + 1):
                self._create_worker(worker_id)

        logger.info(f"WorkerManager started with {num_workers} workers")

    def _create_worker(self, worker_id: int) -> Worker:
        """Создание воркера и его потока."""
        worker = Worker(id=worker_id)
        worker.start()
        self._workers.append(worker)

        thread = threading.Thread(
            target=self._worker_loop,
            args=(worker,),
            name=worker.name,
            daemon=True
        )
        self._worker_threads[worker.id] = thread
        thread.start()
        return worker

    def _worker_loop(self, worker: Worker):
        """Основной цикл воркера: IDLE -> PROCESSING -> IDLE ... -> TERMINATED."""
        logger.info(f"Worker {worker.id} started and waiting for tasks")

        try:
            for task in self._task_channel:
                worker.set_processing()
                logger.info(f"Worker {worker.id} is processing task {task.id}")

                try:
                    self._process(task, worker)
                    logger.info(f"Worker {worker.id} finished processing task {task.id}")
                finally:
                    # Задача уходит сборщику даже при BaseException из обработчика
                    self._result_channel.send(task)
                worker.set_idle()
        finally:
            worker.terminate()
            logger.info(f"Worker {worker.id} has finished all tasks and is shutting down")

    def _process(self, task: Task, worker: Worker):
        """Выполнение обработчика. Ошибка фиксируется в задаче, задача не теряется."""
        try:
            self._handler(task)
        except Exception as e:
            logger.error(f"Handler failed for task {task.id} on worker {worker.id}: {e}")
            task.mark_failed(e)
        except BaseException as e:
            task.mark_failed(e)
            raise
        else:
            task.mark_processed()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Ожидание завершения всех воркеров.

        Returns:
            True если все потоки завершились
        """
        with self._lock:
            threads = list(self._worker_threads.values())

        for thread in threads:
            thread.join(timeout=timeout)

        return not any(thread.is_alive() for thread in threads)

    def get_workers(self) -> List[Worker]:
        """Получение списка воркеров."""
        with self._lock:
            return self._workers.copy()

    def get_worker_stats(self) -> Dict[str, Any]:
        """Получение статистики воркеров."""
        with self._lock:
            workers = self._workers.copy()

        return {
            'total_workers': len(workers),
            'idle_workers': sum(1 for w in workers if w.status == WorkerStatus.IDLE),
            'processing_workers': sum(1 for w in workers if w.status == WorkerStatus.PROCESSING),
            'terminated_workers': sum(1 for w in workers if w.status == WorkerStatus.TERMINATED),
            'tasks_processed': sum(w.tasks_processed for w in workers)
        }

    def __repr__(self) -> str:
        stats = self.get_worker_stats()
        return (f"WorkerManager(workers={stats['total_workers']}, "
                f"processing={stats['processing_workers']}, "
                f"terminated={stats['terminated_workers']})")
