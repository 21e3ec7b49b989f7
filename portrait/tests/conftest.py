import pytest

from portrait.core.config import reset_settings


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Every test starts from default settings, whatever the environment says."""
    for name in ("PORTRAIT_ATTRIBUTE_NAMESPACE", "PORTRAIT_COMPANION_SUFFIX", "PORTRAIT_DEBUG_PRINT", "PORTRAIT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()
