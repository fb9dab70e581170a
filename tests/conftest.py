import logging
import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from lifecycle_http.settings import Settings, reload_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings_cache():
    reload_settings()
    yield
    reload_settings()


@pytest.fixture
def logger():
    test_logger = logging.getLogger("lifecycle-http-tests")
    test_logger.setLevel(logging.DEBUG)
    return test_logger


@pytest.fixture
def settings():
    """Settings bound to an ephemeral loopback port with short deadlines."""
    return Settings(
        environment="test",
        listen_address="127.0.0.1:0",
        start_timeout_seconds=5.0,
        shutdown_timeout_seconds=5.0,
        service_name="lifecycle-http-service-tests",
        _env_file=None,
    )


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "tests/integration/" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def make_request():
    """Build a Starlette request fed by a fixed list of ASGI receive messages."""
    from starlette.requests import Request

    def _make(path, messages, method="POST", headers=None):
        scope = {
            "type": "http",
            "method": method,
            "path": path,
            "raw_path": path.encode(),
            "root_path": "",
            "scheme": "http",
            "query_string": b"",
            "headers": headers or [],
            "server": ("testserver", 80),
            "client": ("127.0.0.1", 50000),
        }
        pending = list(messages)

        async def receive():
            return pending.pop(0)

        return Request(scope, receive)

    return _make
