"""
Logging configuration with structured logging and optional file handlers.
"""
import logging
import logging.handlers
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict
import traceback


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        # Fields attached by LogContext
        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class LoggerFactory:
    """Factory for creating configured loggers."""

    _loggers: Dict[str, logging.Logger] = {}
    _configured = False

    @classmethod
    def configure(
        cls,
        log_dir: str = "logs",
        log_level: str = "WARNING",
        enable_console: bool = True,
        enable_file: bool = False,
        enable_structured: bool = False,
        max_bytes: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5,
        force: bool = False
    ):
        """
        Configure logging for the engine's loggers.

        Handlers are attached to the `validation` and `config` package
        loggers rather than the root logger, so that a host application
        keeps control over its own logging.
        """
        if cls._configured and not force:
            return

        level = getattr(logging, log_level.upper())
        targets = [logging.getLogger(name) for name in ('validation', 'config', 'utils')]

        for target in targets:
            target.setLevel(level)
            for handler in list(target.handlers):
                target.removeHandler(handler)

        handlers = []

        if enable_console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setLevel(level)
            if enable_structured:
                console_handler.setFormatter(StructuredFormatter())
            else:
                console_handler.setFormatter(
                    logging.Formatter(
                        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
                    )
                )
            handlers.append(console_handler)

        # File handler with rotation
        if enable_file:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path / "validation.log",
                maxBytes=max_bytes,
                backupCount=backup_count
            )
            file_handler.setLevel(logging.DEBUG)
            if enable_structured:
                file_handler.setFormatter(StructuredFormatter())
            else:
                file_handler.setFormatter(
                    logging.Formatter(
                        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
                    )
                )
            handlers.append(file_handler)

        for target in targets:
            for handler in handlers:
                target.addHandler(handler)

        cls._configured = True

    @classmethod
    def configure_from(cls, config) -> None:
        """Configure logging from a `Config`-like object with a `get` method."""
        cls.configure(
            log_dir=config.get('logging.log_dir', 'logs'),
            log_level=config.get('logging.log_level', 'WARNING'),
            enable_file=config.get('logging.enable_file', False),
            enable_structured=config.get('logging.enable_structured', False),
            force=True
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get or create a logger with the given name."""
        if not cls._configured:
            cls.configure()

        if name not in cls._loggers:
            cls._loggers[name] = logging.getLogger(name)

        return cls._loggers[name]


class LogContext:
    """Context manager for adding extra fields to logs."""

    def __init__(self, logger: logging.Logger, **extra_fields):
        self.logger = logger
        self.extra_fields = extra_fields
        self.old_factory = None

    def __enter__(self):
        old_factory = logging.getLogRecordFactory()
        extra_fields = self.extra_fields

        def record_factory(*args, **kwargs):
            record = old_factory(*args, **kwargs)
            record.extra_fields = extra_fields
            return record

        logging.setLogRecordFactory(record_factory)
        self.old_factory = old_factory
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.old_factory:
            logging.setLogRecordFactory(self.old_factory)


# Convenience function
def get_logger(name: str) -> logging.Logger:
    """Get a configured logger."""
    return LoggerFactory.get_logger(name)
