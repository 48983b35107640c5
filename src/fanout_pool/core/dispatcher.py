"""
Диспетчер проб: fan-out по одной пробе на цель, fan-in через общий канал.
"""

import threading
from typing import List, Optional, Sequence, Union

from .channel import Channel
from .probe import Probe
from ..models.health import HealthCheckResult, HealthCheckTarget
from ..utils.config import ProbeConfig
from ..utils.logger import get_logger, log_execution_time


logger = get_logger(__name__)

TargetLike = Union[str, HealthCheckTarget]


class ProbeDispatcher:
    """
    Проверка пачки целей.

    Емкость канала результатов равна размеру пачки, поэтому ни одна проба
    не блокируется на отправке. Сборщик читает ровно столько результатов,
    сколько целей, и не зависит от закрытия канала.
    """

    def __init__(self, config: Optional[ProbeConfig] = None, probe: Optional[Probe] = None):
        self.config = config or ProbeConfig()
        self._probe = probe or Probe(self.config)

    @log_execution_time
    def check_all(self, targets: Sequence[TargetLike]) -> List[HealthCheckResult]:
        """
        Проверка всех целей.

        Args:
            targets: Адреса или HealthCheckTarget

        Returns:
            Ровно по одному результату на цель, порядок не определен
        """
        urls = [t.url if isinstance(t, HealthCheckTarget) else t for t in targets]
        if not urls:
            return []

        results_channel: Channel[HealthCheckResult] = Channel(len(urls), name="probe-results")

        logger.info(f"Dispatching {len(urls)} probes")
        for index, url in enumerate(urls, start=1):
            threading.Thread(
                target=self._run_probe,
                args=(url, results_channel),
                name=f"probe-{index}",
                daemon=True
            ).start()

        results = [results_channel.receive() for _ in urls]

        up_count = sum(1 for r in results if r.is_up())
        logger.info(f"Health check complete: {up_count} UP, {len(results) - up_count} DOWN")
        return results

    def _run_probe(self, url: str, results_channel: Channel[HealthCheckResult]):
        """Запуск пробы. Любая ошибка превращается в DOWN, результат отправляется всегда."""
        result = HealthCheckResult.down(url)
        try:
            result = self._probe.check(url)
        except Exception:
            logger.exception(f"Unexpected error probing {url}")
        finally:
            results_channel.send(result)
