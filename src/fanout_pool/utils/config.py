"""
Система конфигурации пула воркеров и сервиса проверки здоровья.
"""

import json
import yaml
import os
import psutil
from typing import Any, Callable, Dict, List, Optional, Union
from dataclasses import dataclass, asdict, field
from pathlib import Path

from ..exceptions import ConfigurationError


ENV_PREFIX = "FANOUT_"


@dataclass
class PoolConfig:
    """Конфигурация пула воркеров."""
    num_workers: Optional[int] = None  # None - по числу логических CPU
    task_capacity: int = 5
    result_capacity: int = 5
    work_duration: float = 1.0  # Имитация работы, секунды
    send_interval: float = 0.5  # Пауза между отправками задач, секунды

    def resolve_num_workers(self) -> int:
        """Количество воркеров с учетом значения по умолчанию."""
        if self.num_workers is not None:
            return self.num_workers
        return default_worker_count()


@dataclass
class ProbeConfig:
    """Конфигурация пробы."""
    timeout: float = 3.0
    user_agent: str = "fanout-pool-healthcheck"


@dataclass
class ServerConfig:
    """Конфигурация HTTP-сервера."""
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class Config:
    """Основная конфигурация."""

    log_level: str = "INFO"
    log_file: Optional[str] = None

    pool: PoolConfig = field(default_factory=PoolConfig)
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Создание из словаря."""
        data = dict(data or {})
        pool_data = data.pop('pool', None) or {}
        probe_data = data.pop('probe', None) or {}
        server_data = data.pop('server', None) or {}

        try:
            return cls(
                pool=PoolConfig(**pool_data),
                probe=ProbeConfig(**probe_data),
                server=ServerConfig(**server_data),
                **data
            )
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}") from e

    def validate(self) -> bool:
        """Валидация конфигурации."""
        try:
            errors = self._collect_errors()
        except TypeError as e:
            # Значение не того типа, например строка вместо числа
            raise ConfigurationError(f"Configuration validation failed: {e}") from e

        if errors:
            raise ConfigurationError(f"Configuration validation failed: {'; '.join(errors)}")

        return True

    def _collect_errors(self) -> List[str]:
        errors = []

        if self.pool.num_workers is not None and self.pool.num_workers < 1:
            errors.append("pool.num_workers must be >= 1")

        if self.pool.task_capacity < 1:
            errors.append("pool.task_capacity must be >= 1")

        if self.pool.result_capacity < 1:
            errors.append("pool.result_capacity must be >= 1")

        if self.pool.work_duration < 0:
            errors.append("pool.work_duration must be >= 0")

        if self.pool.send_interval < 0:
            errors.append("pool.send_interval must be >= 0")

        if self.probe.timeout <= 0:
            errors.append("probe.timeout must be > 0")

        if not 0 < self.server.port < 65536:
            errors.append("server.port must be in 1..65535")

        return errors

    def update(self, **kwargs) -> 'Config':
        """Обновление конфигурации с новыми значениями."""
        return merge_dicts_into_config(self, kwargs)


def default_worker_count() -> int:
    """Число логических CPU хоста, минимум 1."""
    return psutil.cpu_count(logical=True) or 1


def load_config(file_path: Union[str, Path]) -> Config:
    """
    Загрузка конфигурации из файла.

    Args:
        file_path: Путь к файлу конфигурации (.yaml, .yml или .json)

    Returns:
        Объект конфигурации
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            if file_path.suffix.lower() in ['.yaml', '.yml']:
                data = yaml.safe_load(f)
            elif file_path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                raise ConfigurationError(f"Unsupported configuration file format: {file_path.suffix}")
        except (yaml.YAMLError, ValueError) as e:
            raise ConfigurationError(f"Cannot parse configuration file {file_path}: {e}") from e

    if data is not None and not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {file_path} must contain a mapping")

    config = Config.from_dict(data)
    config.validate()

    return config


def save_config(config: Config, file_path: Union[str, Path], format: str = 'yaml'):
    """
    Сохранение конфигурации в файл.

    Args:
        config: Объект конфигурации
        file_path: Путь к файлу
        format: Формат файла ('yaml' или 'json')
    """
    file_path = Path(file_path)
    data = config.to_dict()

    file_path.parent.mkdir(parents=True, exist_ok=True)

    with open(file_path, 'w', encoding='utf-8') as f:
        if format.lower() == 'yaml':
            yaml.safe_dump(data, f, default_flow_style=False, indent=2)
        elif format.lower() == 'json':
            json.dump(data, f, indent=2, ensure_ascii=False)
        else:
            raise ConfigurationError(f"Unsupported format: {format}")


def load_config_from_env(base: Optional[Config] = None) -> Config:
    """
    Загрузка конфигурации из переменных окружения.

    Переменные FANOUT_* перекрывают значения базовой конфигурации.

    Returns:
        Объект конфигурации
    """
    overrides: Dict[str, Any] = {}

    def env(name: str) -> Optional[str]:
        return os.getenv(ENV_PREFIX + name)

    def parse(name: str, cast: Callable[[str], Any]) -> Any:
        try:
            return cast(env(name))
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {ENV_PREFIX}{name}: {env(name)!r}") from e

    if env('LOG_LEVEL'):
        overrides['log_level'] = env('LOG_LEVEL')

    if env('LOG_FILE'):
        overrides['log_file'] = env('LOG_FILE')

    pool_data = {}
    if env('NUM_WORKERS'):
        pool_data['num_workers'] = parse('NUM_WORKERS', int)

    if env('TASK_CAPACITY'):
        pool_data['task_capacity'] = parse('TASK_CAPACITY', int)

    if env('RESULT_CAPACITY'):
        pool_data['result_capacity'] = parse('RESULT_CAPACITY', int)

    if env('WORK_DURATION'):
        pool_data['work_duration'] = parse('WORK_DURATION', float)

    if env('SEND_INTERVAL'):
        pool_data['send_interval'] = parse('SEND_INTERVAL', float)

    if pool_data:
        overrides['pool'] = pool_data

    probe_data = {}
    if env('PROBE_TIMEOUT'):
        probe_data['timeout'] = parse('PROBE_TIMEOUT', float)

    if probe_data:
        overrides['probe'] = probe_data

    server_data = {}
    if env('HOST'):
        server_data['host'] = env('HOST')

    if env('PORT'):
        server_data['port'] = parse('PORT', int)

    if server_data:
        overrides['server'] = server_data

    return merge_dicts_into_config(base or Config(), overrides)


def create_default_config() -> Config:
    """Создание конфигурации по умолчанию."""
    return Config()


def merge_dicts_into_config(base_config: Config, overrides: Dict[str, Any]) -> Config:
    """
    Наложение словаря переопределений на конфигурацию.

    Args:
        base_config: Базовая конфигурация
        overrides: Значения для переопределения, вложенные секции - словарями

    Returns:
        Новая конфигурация
    """
    def merge(base: dict, override: dict) -> dict:
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = merge(result[key], value)
            else:
                result[key] = value
        return result

    return Config.from_dict(merge(base_config.to_dict(), overrides))
