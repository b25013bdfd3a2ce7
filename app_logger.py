import logging

import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
ROOT_NAME = "asset_tracker"


def setup_logging():
    level = getattr(logging, config.LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    logger = logging.getLogger(ROOT_NAME)
    logger.setLevel(level)
    return logger


def get_logger(name=None) -> logging.Logger:
    base = logging.getLogger(ROOT_NAME)
    return base.getChild(name) if name else base


logger = setup_logging()
