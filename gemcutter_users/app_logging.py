"""Log configuration for applications using this package."""

import logging

from pythonjsonlogger import jsonlogger


HANDLER_NAME = 'gemcutter_users'


def setup_logger(level: str = 'INFO', json_logs: bool = False) -> None:
    """
    Attach a stream handler to the root logger.

    Calling this again replaces the handler installed by an earlier call.
    """
    logger = logging.getLogger()
    for handler in list(logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            logger.removeHandler(handler)
    log_handler = logging.StreamHandler()
    log_handler.set_name(HANDLER_NAME)
    if json_logs:
        formatter: logging.Formatter = jsonlogger.JsonFormatter(
            '%(asctime)s %(levelname)s %(name)s %(message)s',
            rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
        )
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s: "%(message)s" [%(name)s]'
        )
    log_handler.setFormatter(formatter)
    logger.addHandler(log_handler)
    logger.setLevel(level)
