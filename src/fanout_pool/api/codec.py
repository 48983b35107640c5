"""
Кодек HTTP-тела: JSON-массив адресов на входе, JSON-массив результатов на выходе.
"""

import json
from typing import Iterable, List, Union

from ..models.health import HealthCheckResult, HealthCheckTarget
from ..exceptions import InvalidRequestError


def decode_targets(body: Union[bytes, str]) -> List[HealthCheckTarget]:
    """
    Декодирование тела запроса в список целей.

    Args:
        body: Тело запроса

    Returns:
        Цели в исходном порядке

    Raises:
        InvalidRequestError: тело не является JSON-массивом строк
    """
    if isinstance(body, bytes):
        try:
            body = body.decode('utf-8')
        except UnicodeDecodeError as e:
            raise InvalidRequestError(f"Request body is not valid UTF-8: {e}") from e

    try:
        data = json.loads(body)
    except ValueError as e:
        raise InvalidRequestError(f"Request body is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise InvalidRequestError(f"Expected a JSON array, got {type(data).__name__}")

    for index, item in enumerate(data):
        if not isinstance(item, str):
            raise InvalidRequestError(f"Item {index} is not a string: {item!r}")

    return [HealthCheckTarget(url=url) for url in data]


def encode_results(results: Iterable[HealthCheckResult]) -> str:
    """Кодирование результатов в JSON-массив объектов {url, status}."""
    return json.dumps([result.to_dict() for result in results])
