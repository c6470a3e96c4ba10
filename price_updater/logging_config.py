"""Logging setup for the price service: readable console lines plus JSON files."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

from pythonjsonlogger import jsonlogger

from price_updater.config import settings

SERVICE_NAME = "price_updater"

# Third-party loggers that flood the quote path at DEBUG/INFO
NOISY_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio", "httpx")


class QuoteJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines keyed for log search; quote context arrives as extra fields."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['service'] = SERVICE_NAME
        log_record['source'] = f"{record.filename}:{record.lineno}"


def setup_logging(base_dir: str | Path | None = None, log_to_file: bool | None = None):
    """Configure the root logger.

    Args:
        base_dir: Directory that receives the logs/ folder (default: cwd).
        log_to_file: Write app.log / error.log JSON files. Defaults to
                     ``settings.log_to_file``.
    """
    if log_to_file is None:
        log_to_file = settings.log_to_file

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    root_logger.addHandler(console_handler)

    if log_to_file:
        logs_dir = (Path(base_dir) if base_dir else Path.cwd()) / "logs"
        logs_dir.mkdir(exist_ok=True)

        json_formatter = QuoteJsonFormatter(
            "%(timestamp)s %(level)s %(name)s %(message)s",
            json_ensure_ascii=False,  # Ukrainian unit text stays readable
        )

        json_handler = logging.FileHandler(logs_dir / "app.log", encoding="utf-8")
        json_handler.setFormatter(json_formatter)
        root_logger.addHandler(json_handler)

        error_handler = logging.FileHandler(logs_dir / "error.log", encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(json_formatter)
        root_logger.addHandler(error_handler)

    # SQL echo only when debugging
    noisy_level = logging.INFO if settings.debug else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)

    return root_logger


class QuoteLoggerAdapter(logging.LoggerAdapter):
    """
    Carries quote context (product_id, quantity, rule_id) on every record.

    The context is prefixed to the message for the console and attached as
    extra fields for the JSON files. Per-call ``extra`` values win over the
    adapter's context.
    """

    def process(self, msg, kwargs):
        context = {**self.extra, **kwargs.get('extra', {})}
        kwargs['extra'] = context
        if context:
            prefix = " ".join(f"{key}={value}" for key, value in context.items())
            msg = f"[{prefix}] {msg}"
        return msg, kwargs

    def bind(self, **context) -> "QuoteLoggerAdapter":
        """New adapter with additional context."""
        return QuoteLoggerAdapter(self.logger, {**self.extra, **context})


def get_logger(name: str, **context) -> QuoteLoggerAdapter:
    """
    Get a logger that tags records with quote context.

    Args:
        name: Logger name (usually __name__)
        **context: Context fields (e.g., product_id=42)

    Returns:
        QuoteLoggerAdapter with context
    """
    return QuoteLoggerAdapter(logging.getLogger(name), context)
