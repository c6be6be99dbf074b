import logging

from monetmapi.errors import ProgrammingError


logger = logging.getLogger("monetdb_logger")
logger.setLevel(logging.DEBUG)
logger.disabled = True


def start_logging(log_path=None):
    log_path = log_path or '/tmp/monetmapi.log'
    logger.disabled = False
    try:
        handler = logging.FileHandler(log_path)
    except OSError as e:
        raise ProgrammingError("Bad log path was given, please verify path is valid and no forbidden "
                               "characters were used") from e

    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    logger.addHandler(handler)

    return logger


def stop_logging():
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.disabled = True


def log_and_raise(exception_type, error_msg, cause=None):
    if logger.isEnabledFor(logging.ERROR):
        logger.error(error_msg, exc_info=cause is not None)

    if cause is not None:
        raise exception_type(error_msg) from cause
    raise exception_type(error_msg)
