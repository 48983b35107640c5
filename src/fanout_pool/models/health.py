"""
Модели проверки здоровья: цель и результат.
"""

from enum import Enum
from typing import Any, Dict
from dataclasses import dataclass


class HealthStatus(Enum):
    """Классификация цели."""
    UP = "UP"
    DOWN = "DOWN"


@dataclass(frozen=True)
class HealthCheckTarget:
    """Цель проверки. Только для чтения."""
    url: str


@dataclass(frozen=True)
class HealthCheckResult:
    """Результат одной пробы. Создается один раз и не изменяется."""

    url: str
    status: HealthStatus

    # Атрибут модели -> имя поля в JSON
    JSON_FIELDS = {
        "url": "url",
        "status": "status",
    }

    @classmethod
    def up(cls, url: str) -> "HealthCheckResult":
        return cls(url=url, status=HealthStatus.UP)

    @classmethod
    def down(cls, url: str) -> "HealthCheckResult":
        return cls(url=url, status=HealthStatus.DOWN)

    def is_up(self) -> bool:
        return self.status == HealthStatus.UP

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь по схеме JSON_FIELDS."""
        values = {"url": self.url, "status": self.status.value}
        return {json_name: values[attr] for attr, json_name in self.JSON_FIELDS.items()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HealthCheckResult":
        """Создание из словаря по схеме JSON_FIELDS."""
        fields = cls.JSON_FIELDS
        return cls(url=data[fields["url"]], status=HealthStatus(data[fields["status"]]))
