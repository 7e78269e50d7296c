import pytest

from srdtool.logging import configure_logging
from srdtool.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def _fresh_reporter():
    """Each test starts and ends with a quiet reporter at verbosity 0.

    Reporters bind the stream they were created with, which may be a
    capture stream that pytest closes after the test.
    """
    set_reporter(SilentReporter())
    set_verbosity(0)
    configure_logging(0)
    yield
    set_reporter(SilentReporter())
    set_verbosity(0)
    configure_logging(0)
