import logging

import pytest


@pytest.fixture(autouse=True)
def reset_hoststat_logger():
    """Drop handlers bound to a test's captured stderr and reset the level."""
    yield
    logger = logging.getLogger("hoststat")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
