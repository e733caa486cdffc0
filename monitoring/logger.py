"""
Logging setup for Memecoin Observatory
Console output plus rotating combined/error files with JSON records
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger as collector_logger


class JsonFormatter(logging.Formatter):
    """JSON log formatter"""

    def format(self, record):
        log_obj = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'token_address'):
            log_obj["token_address"] = record.token_address

        return json.dumps(log_obj)


class ColoredFormatter(logging.Formatter):
    """Colored console formatter"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[41m'   # Red Background
    }
    RESET = '\033[0m'

    def format(self, record):
        original = record.levelname
        record.levelname = f"{self.COLORS.get(original, '')}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class StructuredLogger:
    """Owns the process-wide logging configuration"""

    CONSOLE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    def __init__(self, name: str = "observatory", config: Optional[Dict[str, Any]] = None):
        self.name = name
        self.config = self._default_config()
        if config:
            self.config.update(config)

    @staticmethod
    def _default_config() -> Dict[str, Any]:
        return {
            "level": "INFO",
            "directory": "./logs",
            "max_file_size": 10 * 1024 * 1024,
            "backup_count": 5,
            "console": True,
            "colored": sys.stdout.isatty(),
        }

    def setup_logging(self, config: Optional[Dict[str, Any]] = None) -> None:
        """
        Configure the root logger and the loguru sink used by collectors

        Args:
            config: Optional overrides (level, directory, max_file_size, backup_count)
        """
        if config:
            self.config.update(config)

        log_dir = Path(self.config["directory"])
        log_dir.mkdir(parents=True, exist_ok=True)
        level = getattr(logging, str(self.config["level"]).upper(), logging.INFO)

        root = logging.getLogger()
        root.setLevel(level)
        root.handlers = []

        if self.config["console"]:
            console_handler = logging.StreamHandler(sys.stdout)
            formatter_cls = ColoredFormatter if self.config["colored"] else logging.Formatter
            console_handler.setFormatter(formatter_cls(self.CONSOLE_FORMAT))
            root.addHandler(console_handler)

        combined_handler = RotatingFileHandler(
            log_dir / "combined.log",
            maxBytes=self.config["max_file_size"],
            backupCount=self.config["backup_count"]
        )
        combined_handler.setFormatter(JsonFormatter())
        root.addHandler(combined_handler)

        error_handler = RotatingFileHandler(
            log_dir / "error.log",
            maxBytes=self.config["max_file_size"],
            backupCount=self.config["backup_count"]
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JsonFormatter())
        root.addHandler(error_handler)

        # Collectors log through loguru
        collector_logger.remove()
        if self.config["console"]:
            collector_logger.add(sys.stderr, level=logging.getLevelName(level))
        collector_logger.add(
            str(log_dir / "collectors.log"),
            level=logging.getLevelName(level),
            rotation=self.config["max_file_size"],
            retention=self.config["backup_count"],
            serialize=True,
        )

        logging.getLogger(__name__).info(
            f"Logging configured at {logging.getLevelName(level)} in {log_dir}"
        )


def setup_logging(config: Optional[Dict[str, Any]] = None) -> StructuredLogger:
    """Configure logging once at startup."""
    structured = StructuredLogger(config=config)
    structured.setup_logging()
    return structured
