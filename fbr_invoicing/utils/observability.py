# Structured logging configuration (plain text for local runs, JSON for log shippers)

import logging
import json
import sys
from datetime import datetime
from contextvars import ContextVar
from typing import Optional

# Context variables for request tracing
request_id: ContextVar[str] = ContextVar('request_id', default='')
tenant_id: ContextVar[str] = ContextVar('tenant_id', default='')

_RESERVED_ATTRS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'message', 'exc_info', 'exc_text',
    'stack_info', 'getMessage',
}

PLAIN_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredFormatter(logging.Formatter):
    """
    Formatter that emits one JSON object per record, including every
    ``extra=`` field passed by the caller.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.utcnow().isoformat() + 'Z',
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        req_id = request_id.get('')
        if req_id:
            log_entry['request_id'] = req_id

        tid = tenant_id.get('')
        if tid:
            log_entry['tenant_id'] = tid

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "plain", logger_name: Optional[str] = None) -> logging.Logger:
    """
    Configures the root logger (or ``logger_name``) with a single stdout handler.

    Args:
        level: Log level name, e.g. "INFO".
        fmt: "plain" or "json".
        logger_name: Logger to configure; root logger when omitted.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    target = logging.getLogger(logger_name)

    target.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if fmt.lower() == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))

    target.addHandler(handler)
    target.setLevel(log_level)
    return target


def set_request_context(req_id: str, tenant: str = ""):
    request_id.set(req_id)
    if tenant:
        tenant_id.set(tenant)


def clear_request_context():
    request_id.set('')
    tenant_id.set('')
