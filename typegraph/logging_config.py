import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(log_level="INFO", logger_name="typegraph"):
    """
    Configures logging for the engine's loggers.

    Installs a single stdout handler on ``logger_name`` (the package logger by
    default, pass ``""`` for the root logger); calling it again only updates the level.
    """
    target = logging.getLogger(logger_name)
    target.setLevel(log_level)

    for existing in target.handlers:
        if getattr(existing, "_typegraph_handler", False):
            existing.setLevel(log_level)
            return existing

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._typegraph_handler = True  # type: ignore[attr-defined]

    target.addHandler(handler)
    return handler
