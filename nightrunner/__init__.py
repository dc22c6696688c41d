"""Test orchestration engine with JUnit-style reporting."""

from nightrunner.loader import read_test_source
from nightrunner.models.settings import Settings
from nightrunner.orchestrator import Runner

__all__ = ["Runner", "Settings", "read_test_source"]
