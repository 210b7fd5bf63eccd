import logging

import pytest

from batchflow.core.log import PACKAGE_LOGGER_NAME


@pytest.fixture(autouse=True)
def _reset_package_logger():
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    level, propagate, handlers = logger.level, logger.propagate, list(logger.handlers)
    yield
    logger.setLevel(level)
    logger.propagate = propagate
    logger.handlers[:] = handlers
