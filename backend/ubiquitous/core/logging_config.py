"""
Unified logging configuration with structured JSON logging, request context and file rotation
"""
import json
import logging
import re
import sys
from contextvars import ContextVar
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

from ubiquitous.core.config import get_settings

# Context variables for request context
request_context: ContextVar[Dict[str, Any]] = ContextVar('request_context', default={})

# LogRecord attributes that are not user supplied "extra" fields
_RESERVED_RECORD_KEYS = frozenset({
    'name', 'msg', 'args', 'created', 'filename', 'funcName', 'levelname',
    'levelno', 'lineno', 'module', 'msecs', 'message', 'pathname', 'process',
    'processName', 'relativeCreated', 'thread', 'threadName', 'exc_info',
    'exc_text', 'stack_info', 'taskName',
})

_WEEKLY_ROTATIONS = ('W0', 'W1', 'W2', 'W3', 'W4', 'W5', 'W6')


class SensitiveDataFilter(logging.Filter):
    """Filter to mask sensitive data in log messages"""

    SENSITIVE_PATTERNS = [
        (re.compile(r'password["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', re.IGNORECASE), 'password": "***"'),
        (re.compile(r'token["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', re.IGNORECASE), 'token": "***"'),
        (re.compile(r'api[_-]?key["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', re.IGNORECASE), 'api_key": "***"'),
        (re.compile(r'secret["\']?\s*[:=]\s*["\']?([^"\'\s&]+)', re.IGNORECASE), 'secret": "***"'),
        (re.compile(r'Bearer\s+([^\s"]+)', re.IGNORECASE), 'Bearer ***'),
        (re.compile(r'(postgresql|mysql)://([^:/@\s]+):([^@\s]+)@', re.IGNORECASE), r'\1://\2:***@'),
    ]

    def __init__(self, enabled: bool = True):
        super().__init__()
        self.enabled = enabled

    def _mask(self, text: str) -> str:
        for pattern, replacement in self.SENSITIVE_PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.enabled:
            return True

        if isinstance(record.msg, str):
            record.msg = self._mask(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self._mask(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True


class ContextualFormatter(logging.Formatter):
    """JSON formatter that merges the current request context into every record"""

    def __init__(self, datefmt: Optional[str] = None):
        super().__init__(datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        log_dict = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
            'message': record.getMessage(),
        }

        ctx = request_context.get({})
        if ctx:
            log_dict.update(ctx)

        if record.exc_info:
            log_dict['exception'] = self.formatException(record.exc_info)

        # Fields passed through extra=
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS or key in log_dict:
                continue
            try:
                json.dumps(value, default=str)
                log_dict[key] = value
            except (TypeError, ValueError):
                log_dict[key] = str(value)

        return json.dumps(log_dict, ensure_ascii=False, default=str)


class LoggingConfig:
    """Centralized logging configuration with structured logging support"""

    _configured = False
    _module_levels: Dict[str, str] = {}
    _log_metrics: Dict[str, int] = {
        'DEBUG': 0,
        'INFO': 0,
        'WARNING': 0,
        'ERROR': 0,
        'CRITICAL': 0,
    }

    @classmethod
    def configure(cls, module_levels: Optional[Dict[str, str]] = None):
        """Configure logging for the application"""
        if cls._configured:
            return

        settings = get_settings()

        default_levels = {
            "sqlalchemy.engine": "INFO" if settings.log_sqlalchemy else "WARNING",
            "sqlalchemy.pool": "WARNING",
            "sqlalchemy.dialects": "WARNING",
            "uvicorn.access": "INFO" if settings.log_uvicorn_access else "WARNING",
            "uvicorn.error": "INFO",
            "httpx": "WARNING",
            "ubiquitous": settings.log_level,
            "root": settings.log_level,
        }

        if settings.log_module_levels:
            try:
                default_levels.update(json.loads(settings.log_module_levels))
            except (json.JSONDecodeError, TypeError):
                pass

        if module_levels:
            default_levels.update(module_levels)

        cls._module_levels = default_levels

        if settings.log_format.lower() == "json":
            formatter = ContextualFormatter(datefmt='%Y-%m-%d %H:%M:%S')
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

        sensitive_filter = SensitiveDataFilter(enabled=not settings.log_sensitive_data)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.addFilter(sensitive_filter)
        handlers = [console_handler]

        if settings.log_file_enabled:
            file_handler = cls._build_file_handler(settings)
            file_handler.setFormatter(formatter)
            file_handler.addFilter(sensitive_filter)
            handlers.append(file_handler)

        logging.basicConfig(
            level=getattr(logging, default_levels.get("root", "INFO").upper()),
            handlers=handlers,
            force=True
        )

        for module, level in default_levels.items():
            if module == "root":
                continue
            logger = logging.getLogger(module)
            logger.setLevel(getattr(logging, str(level).upper()))

        metrics_handler = cls._MetricsHandler()
        metrics_handler.setLevel(logging.DEBUG)
        logging.getLogger().addHandler(metrics_handler)

        cls._configured = True

    @staticmethod
    def _build_file_handler(settings) -> TimedRotatingFileHandler:
        log_path = Path(settings.log_file_path)
        if not log_path.is_absolute():
            # Relative paths resolve against the project root
            log_path = Path(__file__).resolve().parent.parent.parent.parent / log_path
        log_path.parent.mkdir(parents=True, exist_ok=True)

        when = settings.log_file_rotation
        if when != 'midnight' and when not in _WEEKLY_ROTATIONS:
            when = 'midnight'

        return TimedRotatingFileHandler(
            filename=str(log_path),
            when=when,
            interval=1,
            backupCount=settings.log_file_retention,
            encoding='utf-8'
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger for a module"""
        if not cls._configured:
            cls.configure()
        return logging.getLogger(name)

    @classmethod
    def set_module_level(cls, module: str, level: str):
        logging.getLogger(module).setLevel(getattr(logging, level.upper()))
        cls._module_levels[module] = level

    @classmethod
    def get_module_levels(cls) -> Dict[str, str]:
        return dict(cls._module_levels)

    @classmethod
    def set_context(cls, **kwargs):
        """Set context variables for logging"""
        ctx = request_context.get({}).copy()
        ctx.update(kwargs)
        request_context.set(ctx)

    @classmethod
    def get_context(cls) -> Dict[str, Any]:
        return request_context.get({}).copy()

    @classmethod
    def clear_context(cls):
        request_context.set({})

    @classmethod
    def get_metrics(cls) -> Dict[str, int]:
        """Get per-level log counts"""
        return cls._log_metrics.copy()

    @classmethod
    def reset_metrics(cls):
        cls._log_metrics = {level: 0 for level in cls._log_metrics}

    class _MetricsHandler(logging.Handler):
        """Handler to track log metrics"""

        def emit(self, record: logging.LogRecord):
            level = record.levelname
            if level in LoggingConfig._log_metrics:
                LoggingConfig._log_metrics[level] += 1


# Initialize on import
LoggingConfig.configure()
