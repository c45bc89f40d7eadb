"""Настройка логирования сервиса."""

import logging
import sys

LOG_FMT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    # Перенастраиваем корневой логгер целиком, чтобы повторный вызов не дублировал вывод.
    logging.basicConfig(level=level.upper(), format=LOG_FMT, stream=sys.stdout, force=True)


def setup_logger(logger_name: str) -> logging.Logger:
    """Возвращает логгер модуля; уровень и вывод задает configure_logging."""
    return logging.getLogger(logger_name)
