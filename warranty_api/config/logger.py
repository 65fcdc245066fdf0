"""
Loguru setup for the Warranty Manager API.

Sinks:
- console, colored, at ``LOG_LEVEL``
- ``app.log`` (everything) and ``errors.log`` (ERROR and above)
- ``requests.log`` for the HTTP middleware channel
- ``performance.log`` for timed operations

Request and performance records are routed by the ``channel`` extra set
through ``logger.bind``.
"""

import sys
from pathlib import Path

from fastapi import Request
from loguru import logger

from warranty_api.config.settings import settings

REQUEST_CHANNEL = "request"
PERFORMANCE_CHANNEL = "performance"

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
CHANNEL_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message} | {extra}"


def _channel(name: str):
    return lambda record: record["extra"].get("channel") == name


class LoguruConfig:
    """Installs the application's Loguru sinks."""

    def __init__(self, logs_dir: str = "logs"):
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)

    def file_sinks(self) -> list[dict]:
        return [
            {"sink": "app.log", "level": "DEBUG", "rotation": "10 MB", "retention": "7 days"},
            {"sink": "errors.log", "level": "ERROR", "rotation": "5 MB", "retention": "30 days"},
            {
                "sink": "requests.log", "level": "INFO", "rotation": "20 MB", "retention": "14 days",
                "format": CHANNEL_FORMAT, "filter": _channel(REQUEST_CHANNEL),
            },
            {
                "sink": "performance.log", "level": "INFO", "rotation": "10 MB", "retention": "7 days",
                "format": CHANNEL_FORMAT, "filter": _channel(PERFORMANCE_CHANNEL),
            },
        ]

    def setup_logger(self, log_level: str = "INFO") -> None:
        logger.remove()
        logger.add(
            sys.stdout,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level=log_level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )
        for options in self.file_sinks():
            sink = self.logs_dir / options.pop("sink")
            options.setdefault("format", FILE_FORMAT)
            logger.add(sink, compression="zip", encoding="utf-8", diagnose=False, **options)


def _request_logger(request: Request):
    return logger.bind(
        channel=REQUEST_CHANNEL,
        client_ip=request.client.host if request.client else None,
    )


def log_request_start(request: Request) -> None:
    _request_logger(request).bind(
        query=str(request.query_params),
        user_agent=request.headers.get("user-agent"),
    ).info(f"{request.method} {request.url.path} started")


def log_request_end(request: Request, status_code: int, process_time: float) -> None:
    _request_logger(request).info(
        f"{request.method} {request.url.path} -> {status_code} in {process_time:.4f}s"
    )


def log_request_error(request: Request, error: Exception, process_time: float) -> None:
    _request_logger(request).bind(error_type=type(error).__name__).error(
        f"{request.method} {request.url.path} failed after {process_time:.4f}s: {error}"
    )


def log_performance(operation: str, duration: float, **details) -> None:
    logger.bind(channel=PERFORMANCE_CHANNEL, **details).info(f"{operation} took {duration:.4f}s")


LoguruConfig(logs_dir=settings.LOGS_DIR).setup_logger(settings.LOG_LEVEL)

app_logger = logger
