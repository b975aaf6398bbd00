"""
Shared test configuration for menuquarry.

Fixtures build configuration and in-memory collaborators so that unit tests
never touch the network, a browser or the structuring service.
"""

# Third-party imports
import pytest

# Local imports
from menuquarry.config import Config
from tests.helpers.fakes import MENU_HTML, FakeFetcher


@pytest.fixture
def config(monkeypatch) -> Config:
    """Default configuration with the headless browser disabled and no environment overrides."""
    monkeypatch.delenv("OLLAMA_API_ENDPOINT", raising=False)
    cfg = Config()
    cfg.render.enabled = False
    cfg.fetch.max_retries = 0
    return cfg


@pytest.fixture
def menu_html() -> str:
    return MENU_HTML


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()
