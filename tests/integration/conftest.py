"""Fixtures for integration tests."""

import re
from pathlib import Path

import pytest
from aioresponses import aioresponses as aioresponses_cls

from nightrunner.testing.webdriver.payloads import (
    delete_session_response,
    legacy_new_session_response,
)

from ..conftest import WriteModuleFn

SELENIUM_PORT = 10195
SELENIUM_URL = f"http://127.0.0.1:{SELENIUM_PORT}"


@pytest.fixture
def selenium_server(aioresponses: aioresponses_cls) -> aioresponses_cls:
    """Mock a Selenium server granting firefox/TEST/TEST sessions."""
    aioresponses.post(
        f"{SELENIUM_URL}/session",
        status=200,
        payload=legacy_new_session_response(),
        repeat=True,
    )
    aioresponses.delete(
        re.compile(rf"^{re.escape(SELENIUM_URL)}/session/\w+$"),
        status=200,
        payload=delete_session_response(),
        repeat=True,
    )
    return aioresponses


@pytest.fixture
def simple_tests(sources_root: Path, write_module: WriteModuleFn) -> Path:
    """A folder holding a single passing module."""
    write_module(
        "simple/sample.py",
        """
        def demoTest(client):
            client.assert_ok(True, "Testing if element <#weblogin> is present.")
            client.globals["calls"] += 1
        """,
    )
    return sources_root / "simple"


@pytest.fixture
def subfolder_tests(sources_root: Path, write_module: WriteModuleFn) -> Path:
    """A folder with modules in two subfolders."""
    write_module(
        "withsubfolders/simple/sample.py",
        """
        def simpleDemoTest(client):
            client.assert_ok(True, "Testing if element <#weblogin> is present.")
        """,
    )
    write_module(
        "withsubfolders/tags/sampleTags.py",
        """
        tags = ["login"]

        def demoTagTest(client):
            client.assert_equal(client.globals["asyncHookTimeout"], 10000)
        """,
    )
    return sources_root / "withsubfolders"


@pytest.fixture
def failing_tests(sources_root: Path, write_module: WriteModuleFn) -> Path:
    """A folder with a module whose assertion fails."""
    write_module(
        "withfailures/sample.py",
        """
        def demoTest(client):
            client.assert_ok(False, "Testing if element <#badElement> is present.")
        """,
    )
    return sources_root / "withfailures"


@pytest.fixture
def unit_failure_tests(sources_root: Path, write_module: WriteModuleFn) -> Path:
    """A unit-test module failing a plain assert, addressed without suffix."""
    write_module(
        "asynchooks/unittest-failure.py",
        """
        unit_test = True

        def demoTest():
            assert 1 == 0, '1 == 0 - expected "0" but got: "1"'
        """,
    )
    return sources_root / "asynchooks" / "unittest-failure"


@pytest.fixture
def unit_tests(sources_root: Path, write_module: WriteModuleFn) -> Path:
    """Unit-test modules using done() and coroutines."""
    write_module(
        "unittests/sample_unit.py",
        """
        import asyncio

        unit_test = True

        def before(done):
            asyncio.get_running_loop().call_soon(done)

        def testSync(client):
            client.assert_equal(client.session, None)

        def testWithDone(client, done):
            asyncio.get_running_loop().call_later(0.001, done)

        async def testCoroutine(client):
            await asyncio.sleep(0)
            client.assert_ok(True)
        """,
    )
    return sources_root / "unittests"


@pytest.fixture
def async_timeout_tests(sources_root: Path, write_module: WriteModuleFn) -> Path:
    """A unit-test module whose testcase never calls done()."""
    return write_module(
        "asynchooks/unittest-async-timeout.py",
        """
        unit_test = True

        def demoTest(client, done):
            pass

        def afterTimeout(client):
            client.assert_ok(True)
        """,
    )
