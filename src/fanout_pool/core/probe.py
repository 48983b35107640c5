"""
Проба: одиночная проверка доступности цели по HTTP.
"""

import threading
from typing import Optional, Union

import requests

from .channel import Channel
from ..models.health import HealthCheckResult
from ..utils.config import ProbeConfig
from ..utils.logger import get_logger
from ..exceptions import ChannelTimeoutError


logger = get_logger(__name__)

# Код ответа или исключение транспорта
Outcome = Union[int, BaseException]


def is_success_status(status_code: int) -> bool:
    """Коды класса 2xx считаются успехом."""
    return 200 <= status_code < 300


class Probe:
    """
    Один запрос с общим дедлайном, без ретраев.

    Таймаут requests ограничивает только соединение и каждое чтение сокета,
    поэтому запрос идет в отдельном потоке, а проба ждет его исход не дольше
    config.timeout. Редиректы укладываются в тот же дедлайн.

    Превышение дедлайна и ошибки соединения дают DOWN, ответ вне 2xx - DOWN,
    ответ 2xx - UP. Исключения транспорта наружу не выходят.
    """

    def __init__(self, config: Optional[ProbeConfig] = None):
        self.config = config or ProbeConfig()

    def check(self, url: str) -> HealthCheckResult:
        """
        Проверка цели.

        Args:
            url: Адрес цели

        Returns:
            Результат с исходным url
        """
        outcome_channel: Channel[Outcome] = Channel(1, name="probe-outcome")

        threading.Thread(
            target=self._request,
            args=(url, outcome_channel),
            name=f"{threading.current_thread().name}-request",
            daemon=True
        ).start()

        try:
            outcome = outcome_channel.receive(timeout=self.config.timeout)
        except ChannelTimeoutError:
            # Поток запроса доживет до своего таймаута чтения, его исход никому не нужен
            logger.warning(f"Probe {url} exceeded {self.config.timeout}s deadline")
            return HealthCheckResult.down(url)

        if isinstance(outcome, BaseException):
            logger.warning(f"Probe {url} failed: {type(outcome).__name__}: {outcome}")
            return HealthCheckResult.down(url)

        if is_success_status(outcome):
            logger.debug(f"Probe {url} is UP ({outcome})")
            return HealthCheckResult.up(url)

        logger.info(f"Probe {url} is DOWN ({outcome})")
        return HealthCheckResult.down(url)

    def _request(self, url: str, outcome_channel: Channel[Outcome]):
        """Выполнение запроса. Исход отправляется ровно один раз."""
        outcome: Outcome = RuntimeError("request did not complete")
        try:
            response = requests.get(
                url,
                timeout=self.config.timeout,
                headers={'User-Agent': self.config.user_agent},
                stream=True
            )
            try:
                outcome = response.status_code
            finally:
                response.close()
        except Exception as e:
            outcome = e
        finally:
            outcome_channel.send(outcome)
