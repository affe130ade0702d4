import logging
import sys
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from restaurant_pos.core.config import settings
from restaurant_pos.core.constants import (
    ASSIGNMENT_LOG_CHANNEL,
    ASSIGNMENT_LOG_FORMAT,
    FILE_LOG_FORMAT,
    INTERCEPTED_LOGGERS,
    LOG_COMPRESSION,
    LOG_DEPTH,
    LOG_ENCODING,
    LOG_FORMAT,
    get_logger_header,
)

_STD_INTERCEPT_CONFIGURED = False


class InterceptHandler(logging.Handler):
    """Перехват stdlib логов (uvicorn, sqlalchemy, celery) в loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Передаёт запись стандартного логгера в Loguru."""
        try:
            lvl = logger.level(record.levelname).name
        except ValueError:
            lvl = record.levelno
        logger.opt(
            depth=LOG_DEPTH,
            exception=False,
        ).log(lvl, record.getMessage())


def setup_stdlib_intercept() -> None:
    """Перенаправляет стандартные логи (uvicorn, sqlalchemy и др.) в Loguru."""
    global _STD_INTERCEPT_CONFIGURED
    if _STD_INTERCEPT_CONFIGURED:
        return
    root = logging.getLogger()
    root.handlers = [InterceptHandler()]
    root.setLevel(logging.NOTSET)

    for name in INTERCEPTED_LOGGERS:
        log = logging.getLogger(name)
        log.handlers = [InterceptHandler()]
        log.propagate = False
    _STD_INTERCEPT_CONFIGURED = True


def _ensure_defaults(record: dict) -> dict:
    """Добавляет значения по умолчанию в extra-поля лог-записи."""
    record['extra'].setdefault('username', 'SYSTEM')
    record['extra'].setdefault('user_id', '-')
    record['extra'].setdefault('request_id', '-')
    record['extra'].setdefault('branch_id', '-')
    return record


def _is_assignment_record(record: dict) -> bool:
    """Отбирает записи канала подбора столов."""
    return record['extra'].get('channel') == ASSIGNMENT_LOG_CHANNEL


def _write_log_header(path: Path) -> None:
    """Записывает заголовок с датой в начало нового лог-файла."""
    if path.exists() and path.stat().st_size > 0:
        return
    try:
        with open(path, 'a', encoding=LOG_ENCODING) as f:
            f.write(get_logger_header())
    except OSError as e:
        logger.warning(f'Не удалось записать заголовок в файл {path}: {e}')


def _add_file_sink(
    path: Path,
    log_format: str,
    record_filter: Optional[Callable[[dict], bool]] = None,
) -> None:
    """Файловый sink с общими для POS ротацией и хранением."""
    _write_log_header(path)
    logger.add(
        path,
        level=settings.LOG_LEVEL,
        rotation=settings.LOG_ROTATION,
        retention=settings.LOG_RETENTION,
        compression=LOG_COMPRESSION,
        format=log_format,
        encoding=LOG_ENCODING,
        filter=record_filter,
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )


def configure_logging() -> None:
    """Настраивает Loguru, создаёт sinks и подключает перехват логов stdlib.

    Журнал приложения пишется в stdout и app.log. Решения подбора столов
    дополнительно дублируются в assignment.log, чтобы разбирать спорные
    рассадки по филиалу.
    """
    log_dir = settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.configure(patcher=_ensure_defaults)
    logger.add(
        sys.stdout,
        level=settings.LOG_LEVEL,
        format=LOG_FORMAT,
        colorize=True,
        enqueue=True,
        backtrace=False,
        diagnose=False,
    )
    _add_file_sink(log_dir / 'app.log', FILE_LOG_FORMAT)
    _add_file_sink(
        log_dir / 'assignment.log',
        ASSIGNMENT_LOG_FORMAT,
        _is_assignment_record,
    )
    setup_stdlib_intercept()
