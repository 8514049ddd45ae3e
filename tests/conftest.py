import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.events import EventBus
from modules.utils.config import Config


@pytest.fixture(autouse=True)
def clean_singletons():
    """Every test starts with an empty event bus and a fresh config."""
    EventBus().reset()
    Config.reset()
    yield
    EventBus().reset()
    Config.reset()
