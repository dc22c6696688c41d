"""WebDriver backend module."""

from nightrunner.backends.webdriver.backend import WebDriverBackend
from nightrunner.backends.webdriver.config import WebDriverConfig
from nightrunner.backends.webdriver.manifest import webdriver_manifest

__all__ = ["WebDriverBackend", "WebDriverConfig", "webdriver_manifest"]
