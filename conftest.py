import pytest

from blockroma.common import logs

pytest_plugins = (
    "blockroma.tests.plugins.databases",
    "blockroma.tests.plugins.ether",
    "blockroma.tests.plugins.http",
    "blockroma.tests.plugins.node",
    "blockroma.tests.plugins.settings",
)


@pytest.fixture(scope="session", autouse=True)
def setup_logs():
    logs.configure('DEBUG', formatter_class='logging.Formatter')
