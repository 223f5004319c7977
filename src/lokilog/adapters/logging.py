"""Python logging handler adapter for lokilog.

This adapter bridges Python's standard library logging module to a
LokiLogger, so existing ``logging`` calls are written locally and shipped
to Loki with their extra attributes as typed fields.
"""

import logging
import threading
import traceback

from lokilog.core import fields as f
from lokilog.core.models import Field
from lokilog.logger import LokiLogger

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

# Default attributes to extract from LogRecord
_DEFAULT_INCLUDE_ATTRS = ["module", "funcName", "lineno", "pathname"]

# Records from lokilog itself are never forwarded
_INTERNAL_LOGGER_PREFIX = "lokilog"


class LokiHandler(logging.Handler):
    """Logging handler that forwards log records to a LokiLogger.

    Records at ERROR and above go through ``LokiLogger.error`` with the
    record's exception (or None). Delivery failures are reported through
    ``Handler.handleError`` so logging never raises into the caller.

    Example:
        ```python
        from lokilog import LoggerConfig, LokiLogger
        from lokilog.adapters.logging import LokiHandler

        logger = LokiLogger(LoggerConfig(base_url="http://loki:3100", service="api"))
        logging.getLogger().addHandler(LokiHandler(logger))
        ```
    """

    def __init__(
        self,
        logger: LokiLogger,
        include_attrs: list[str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        """Initialize the handler with a logger.

        Args:
            logger: LokiLogger receiving the records.
            include_attrs: List of LogRecord attributes to include. Defaults to
                ["module", "funcName", "lineno", "pathname"].
            level: Minimum level handled.
        """
        super().__init__(level)
        self._logger = logger
        self._include_attrs = (
            _DEFAULT_INCLUDE_ATTRS if include_attrs is None else include_attrs
        )
        self._local = threading.local()

    def _record_fields(self, record: logging.LogRecord) -> list[Field]:
        """Build fields from configured LogRecord attributes and extras."""
        attr_mapping: dict[str, Field] = {
            "module": f.string("module", record.name),
            "funcName": f.string("funcName", record.funcName or ""),
            "lineno": f.int64("lineno", record.lineno),
            "pathname": f.string("pathname", record.pathname),
        }
        result = [attr_mapping[key] for key in self._include_attrs if key in attr_mapping]

        for key, value in record.__dict__.items():
            if key not in _STANDARD_LOGRECORD_ATTRS and not key.startswith("_"):
                result.append(f.infer(key, value))

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            result.append(f.string("exc_type", exc_type.__name__))
            result.append(
                f.string(
                    "exc_traceback",
                    "".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
                )
            )
        return result

    def emit(self, record: logging.LogRecord) -> None:
        """Forward a log record to the LokiLogger.

        Args:
            record: The log record to emit.
        """
        if record.name.startswith(_INTERNAL_LOGGER_PREFIX):
            return
        # Shipping may log through httpx; do not recurse into ourselves.
        if getattr(self._local, "emitting", False):
            return
        self._local.emitting = True
        try:
            message = record.getMessage()
            record_fields = self._record_fields(record)
            exc_value = record.exc_info[1] if record.exc_info else None
            if record.levelno >= logging.ERROR:
                self._logger.error(message, exc_value, *record_fields)
            else:
                if exc_value is not None:
                    record_fields.append(f.error(exc_value))
                self._emit_at_level(record.levelno, message, record_fields)
        except Exception:
            self.handleError(record)
        finally:
            self._local.emitting = False

    def _emit_at_level(self, levelno: int, message: str, fields: list[Field]) -> None:
        if levelno >= logging.WARNING:
            self._logger.warn(message, *fields)
        elif levelno >= logging.INFO:
            self._logger.info(message, *fields)
        else:
            self._logger.debug(message, *fields)
