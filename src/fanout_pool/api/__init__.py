"""
HTTP-интерфейс сервиса проверки здоровья.
"""

from .app import create_app, serve
from .codec import decode_targets, encode_results

__all__ = [
    "create_app",
    "serve",
    "decode_targets",
    "encode_results"
]
