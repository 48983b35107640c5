"""
Утилиты: конфигурация и логирование.
"""

from .config import Config, PoolConfig, ProbeConfig, ServerConfig, load_config, load_config_from_env
from .logger import get_logger, setup_logging, log_execution_time

__all__ = [
    "Config",
    "PoolConfig",
    "ProbeConfig",
    "ServerConfig",
    "load_config",
    "load_config_from_env",
    "get_logger",
    "setup_logging",
    "log_execution_time"
]
