"""JSON logging configuration for PKI generation."""

import logging

from pythonjsonlogger.json import JsonFormatter

LOGGER_NAME = "cluster_pki"

# "asset" is attached by the executor through ``extra``
LOG_FIELDS = frozenset(
    {
        "timestamp",
        "level",
        "message",
        "exc_info",
        "funcName",
        "lineno",
        "asset",
    }
)


class CustomJsonFormatter(JsonFormatter):
    """JSON formatter restricted to ``LOG_FIELDS``.

    ``levelname`` is emitted as ``level``; records logged while an asset is
    being resolved also carry its key under ``asset``.
    """

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key not in LOG_FIELDS]:
            log_record.pop(key)


def _setup_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
    )

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


LOGGER = _setup_logger()
