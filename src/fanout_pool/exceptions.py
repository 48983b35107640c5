"""
Исключения для пула воркеров и сервиса проверки здоровья.
"""


class FanoutPoolError(Exception):
    """Базовое исключение пакета."""
    pass


class ChannelError(FanoutPoolError):
    """Ошибка канала."""
    pass


class ChannelClosedError(ChannelError):
    """Отправка в закрытый канал или повторное закрытие."""
    pass


class ChannelTimeoutError(ChannelError):
    """Истек таймаут ожидания на канале."""
    pass


class WorkerPoolError(FanoutPoolError):
    """Ошибка жизненного цикла пула воркеров."""
    pass


class InvalidRequestError(FanoutPoolError):
    """Некорректное тело запроса."""
    pass


class ConfigurationError(FanoutPoolError):
    """Ошибка конфигурации."""
    pass
