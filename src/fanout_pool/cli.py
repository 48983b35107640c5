"""
Командная строка: сервер проверки здоровья, демо пула воркеров и разовая проверка.
"""

import sys
import argparse
from typing import List, Optional

from .api.app import serve
from .api.codec import encode_results
from .core.dispatcher import ProbeDispatcher
from .core.worker_pool import WorkerPool
from .models.task import Task
from .utils.config import Config, load_config, load_config_from_env
from .utils.logger import get_logger, setup_logging
from .exceptions import FanoutPoolError


logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Создание парсера аргументов."""
    parser = argparse.ArgumentParser(
        prog="fanout-pool",
        description="Пул воркеров на каналах и сервис параллельной проверки здоровья"
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Путь к файлу конфигурации (.yaml или .json)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Уровень логирования"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Запуск HTTP-сервера POST /health-check")
    serve_parser.add_argument("--host", type=str, help="Адрес для прослушивания")
    serve_parser.add_argument("--port", type=int, help="Порт для прослушивания")

    demo_parser = subparsers.add_parser("demo", help="Демонстрация пула воркеров")
    demo_parser.add_argument("--workers", type=int, default=3, help="Количество воркеров")
    demo_parser.add_argument("--tasks", type=int, default=5, help="Количество задач")

    check_parser = subparsers.add_parser("check", help="Разовая проверка адресов")
    check_parser.add_argument("urls", nargs="*", help="Адреса для проверки")

    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    """Файл конфигурации, затем переменные окружения, затем аргументы."""
    config = load_config(args.config) if args.config else Config()
    config = load_config_from_env(config)

    overrides = {}
    if args.log_level:
        overrides['log_level'] = args.log_level

    server_overrides = {}
    if getattr(args, "host", None) is not None:
        server_overrides['host'] = args.host
    if getattr(args, "port", None) is not None:
        server_overrides['port'] = args.port
    if server_overrides:
        overrides['server'] = server_overrides

    config = config.update(**overrides)
    config.validate()
    return config


def run_demo(config: Config, num_workers: int, num_tasks: int) -> List[Task]:
    """Запуск задач 1..num_tasks на num_workers воркерах."""
    tasks = [Task(id=i) for i in range(1, num_tasks + 1)]
    pool = WorkerPool(config.pool)
    return pool.run(tasks, num_workers=num_workers)


def main(argv: Optional[List[str]] = None) -> int:
    """Основная функция."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args)
    except (FanoutPoolError, FileNotFoundError) as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    setup_logging(level=config.log_level, log_file=config.log_file)

    try:
        if args.command == "serve":
            serve(config)
        elif args.command == "demo":
            run_demo(config, args.workers, args.tasks)
        elif args.command == "check":
            results = ProbeDispatcher(config.probe).check_all(args.urls)
            print(encode_results(results))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 1
    except FanoutPoolError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
