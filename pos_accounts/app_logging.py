"""Root logger configuration."""

import logging
from pythonjsonlogger import jsonlogger

FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logger(level: int = logging.INFO, json: bool = False) -> None:
    """Install a single stream handler on the root logger."""
    log_handler = logging.StreamHandler()
    if json:
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            FORMAT,
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(FORMAT)
    log_handler.setFormatter(formatter)
    logger = logging.getLogger()
    for handler in list(logger.handlers):
        if getattr(handler, '_pos_accounts', False):
            logger.removeHandler(handler)
    log_handler._pos_accounts = True  # type: ignore
    logger.addHandler(log_handler)
    logger.setLevel(level)
