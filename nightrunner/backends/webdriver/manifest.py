"""WebDriver backend manifest."""

from nightrunner.backends.manifest import BackendManifest
from nightrunner.backends.webdriver.backend import WebDriverBackend
from nightrunner.backends.webdriver.config import WebDriverConfig

webdriver_manifest = BackendManifest(
    config_cls=WebDriverConfig,
    backend_factory=WebDriverBackend.from_config,
)
