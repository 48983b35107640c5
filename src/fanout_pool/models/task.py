"""
Модель задачи для пула воркеров.
"""

from typing import Optional
from dataclasses import dataclass


@dataclass
class Task:
    """
    Единица работы.

    Создается продюсером с processed=False, изменяется ровно одним воркером
    и больше не меняется после попадания в канал результатов.
    """

    id: int
    processed: bool = False
    error: Optional[str] = None

    def mark_processed(self):
        """Отметка задачи как обработанной."""
        self.processed = True
        self.error = None

    def mark_failed(self, error: Exception):
        """Фиксация ошибки обработчика без потери задачи."""
        self.processed = False
        self.error = f"{type(error).__name__}: {error}"

    def is_failure(self) -> bool:
        return self.error is not None
