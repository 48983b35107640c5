"""
Ограниченный FIFO-канал для передачи элементов между потоками.
"""

import threading
import time
from typing import Generic, Iterator, Optional, TypeVar
from collections import deque

from ..utils.logger import get_logger
from ..exceptions import ChannelClosedError, ChannelTimeoutError


logger = get_logger(__name__)

T = TypeVar("T")


class Channel(Generic[T]):
    """
    Канал с ограниченной емкостью.

    Один мьютекс и два условия (not_empty, not_full) над упорядоченным буфером
    и флагом closed. Получение из закрытого и пустого канала возвращает None
    вместо блокировки, поэтому None нельзя отправить как элемент.
    """

    def __init__(self, capacity: int = 5, name: str = "channel"):
        if capacity < 1:
            raise ValueError(f"Channel capacity must be >= 1, got {capacity}")

        self.capacity = capacity
        self.name = name
        self._buffer: deque = deque()
        self._closed = False
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._not_full = threading.Condition(self._lock)

        self._metrics = {
            'items_sent': 0,
            'items_received': 0,
            'max_size_reached': 0
        }

        logger.debug(f"Channel '{name}' created with capacity {capacity}")

    def send(self, item: T, timeout: Optional[float] = None):
        """
        Отправка элемента в канал.

        Блокирует, пока канал заполнен.

        Args:
            item: Элемент для отправки
            timeout: Максимальное время ожидания свободного места

        Raises:
            ChannelClosedError: канал закрыт (до или во время ожидания)
            ChannelTimeoutError: истек таймаут
        """
        if item is None:
            raise ValueError("None cannot be sent through a channel")

        deadline = None if timeout is None else time.monotonic() + timeout

        # Ожидание свободного места
        with self._not_full:
            while True:
                if self._closed:
                    raise ChannelClosedError(f"Send on closed channel '{self.name}'")
                if len(self._buffer) < self.capacity:
                    break
                if not self._wait(self._not_full, deadline):
                    raise ChannelTimeoutError(
                        f"Timed out after {timeout}s sending to channel '{self.name}'"
                    )

            # Добавление элемента и пробуждение получателя
            self._buffer.append(item)
            self._metrics['items_sent'] += 1
            self._metrics['max_size_reached'] = max(
                self._metrics['max_size_reached'],
                len(self._buffer)
            )
            self._not_empty.notify()

    def receive(self, timeout: Optional[float] = None) -> Optional[T]:
        """
        Получение элемента из канала.

        Блокирует, пока канал пуст и открыт.

        Args:
            timeout: Максимальное время ожидания элемента

        Returns:
            Элемент или None, если канал закрыт и опустошен

        Raises:
            ChannelTimeoutError: истек таймаут
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._not_empty:
            while not self._buffer:
                if self._closed:
                    return None
                if not self._wait(self._not_empty, deadline):
                    raise ChannelTimeoutError(
                        f"Timed out after {timeout}s receiving from channel '{self.name}'"
                    )

            item = self._buffer.popleft()
            self._metrics['items_received'] += 1
            self._not_full.notify()
            return item

    def close(self):
        """
        Закрытие канала. Вызывается только продюсером и только один раз.

        Будит всех ожидающих: получатели дочитают буфер и выйдут,
        отправители получат ChannelClosedError.
        """
        with self._lock:
            if self._closed:
                raise ChannelClosedError(f"Channel '{self.name}' is already closed")
            self._closed = True
            self._not_empty.notify_all()
            self._not_full.notify_all()

        logger.debug(f"Channel '{self.name}' closed")

    @staticmethod
    def _wait(condition: threading.Condition, deadline: Optional[float]) -> bool:
        """Ожидание условия до дедлайна. False, если дедлайн прошел."""
        if deadline is None:
            condition.wait()
            return True
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return False
        condition.wait(remaining)
        return True

    def is_closed(self) -> bool:
        """Проверка закрытия канала."""
        with self._lock:
            return self._closed

    def get_metrics(self) -> dict:
        """Получение метрик канала."""
        with self._lock:
            metrics = self._metrics.copy()
            metrics['current_size'] = len(self._buffer)
            metrics['capacity'] = self.capacity
            metrics['closed'] = self._closed
            return metrics

    def __iter__(self) -> Iterator[T]:
        """Итерация до закрытия и опустошения канала."""
        while True:
            item = self.receive()
            if item is None:
                return
            yield item

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def __repr__(self) -> str:
        return (f"Channel(name={self.name!r}, size={len(self)}, "
                f"capacity={self.capacity}, closed={self.is_closed()})")
