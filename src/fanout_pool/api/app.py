"""
Flask-приложение сервиса проверки здоровья.
"""

from typing import Optional

from flask import Flask

from .routes import health_bp
from ..core.dispatcher import ProbeDispatcher
from ..utils.config import Config
from ..utils.logger import get_logger


logger = get_logger(__name__)


def create_app(config: Optional[Config] = None, dispatcher: Optional[ProbeDispatcher] = None) -> Flask:
    """
    Создание и настройка приложения.

    Args:
        config: Конфигурация, по умолчанию Config()
        dispatcher: Диспетчер проб, по умолчанию создается из config.probe
    """
    config = config or Config()

    app = Flask(__name__)
    app.config['FANOUT_CONFIG'] = config
    app.extensions['probe_dispatcher'] = dispatcher or ProbeDispatcher(config.probe)

    app.register_blueprint(health_bp)

    return app


def serve(config: Config):
    """Запуск HTTP-сервера. Каждый запрос обрабатывается в своем потоке."""
    app = create_app(config)

    logger.info("starting server")
    logger.info(f"Listening on port {config.server.port}...")
    app.run(host=config.server.host, port=config.server.port, threaded=True)
