import json
import logging
import os
import uuid
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from typing import Optional

# Per-request correlation id; set by whoever drives a domain service
REQUEST_ID_CTX: ContextVar[Optional[str]] = ContextVar('request_id', default=None)


def new_request_id() -> str:
    rid = uuid.uuid4().hex[:12]
    REQUEST_ID_CTX.set(rid)
    return rid


class CorrelationIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        # Attach even if None for uniformity
        record.correlation_id = REQUEST_ID_CTX.get()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        base = {
            'ts': self.formatTime(record, datefmt='%Y-%m-%dT%H:%M:%S'),
            'level': record.levelname,
            'msg': record.getMessage(),
            'logger': record.name,
            'correlation_id': getattr(record, 'correlation_id', None),
        }
        if record.exc_info:
            base['exc_info'] = self.formatException(record.exc_info)
        return json.dumps(base, ensure_ascii=False)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None, log_file: Optional[str] = None):
    """Configure the root logger for the CLI or an embedding service.

    ``level`` defaults to FEARGREED_LOG_LEVEL, ``fmt`` to LOG_FORMAT ('json'
    or text) and ``log_file`` to LOG_FILE (rotating, off when unset).
    """
    level = (level or os.environ.get('FEARGREED_LOG_LEVEL', 'INFO')).upper()
    fmt = (fmt or os.environ.get('LOG_FORMAT', '')).lower()
    log_file = log_file or os.environ.get('LOG_FILE')

    root = logging.getLogger()
    root.setLevel(level)
    # Clear existing handlers to avoid duplicate logs in reloads
    root.handlers = []
    if fmt == 'json':
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(correlation_id)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
        )

    ch = logging.StreamHandler()
    ch.setFormatter(formatter)
    ch.addFilter(CorrelationIdFilter())
    root.addHandler(ch)

    if log_file:
        # 5 MB, keep 3 backups
        try:
            os.makedirs(os.path.dirname(log_file) or '.', exist_ok=True)
            fh = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3)
            fh.setFormatter(formatter)
            fh.addFilter(CorrelationIdFilter())
            root.addHandler(fh)
        except OSError:
            root.warning('Could not attach rotating file handler; continuing with console only')
    return root
