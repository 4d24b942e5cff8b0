import logging
import shutil
import tempfile

import pytest

from listenaddr.logger import ColoredFormatter


def pytest_configure(config):
    logger = logging.getLogger('listenaddr')
    logger.setLevel(logging.DEBUG)

    handler = logging.StreamHandler()
    handler.setLevel(logging.DEBUG)
    cf = ColoredFormatter('%(levelname)-17s:%(name)s:%(lineno)d %(message)s')
    handler.setFormatter(cf)
    logger.addHandler(handler)


@pytest.fixture
def sock_dir():
    """ A short directory name, since sun_path only holds about a hundred bytes. """
    path = tempfile.mkdtemp(prefix='la')
    yield path
    shutil.rmtree(path, ignore_errors=True)
