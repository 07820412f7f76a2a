"""Tests for config loader."""
import os
import pytest


def reset_config():
    """Reset global config state for testing."""
    import lostfound.utils.config_loader as module
    with module._config_lock:
        module._config = None


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


def test_load_config():
    """Test loading config from yaml file."""
    from lostfound.utils.config_loader import load_config

    config = load_config("config/config.yaml")

    assert config is not None
    assert "vision" in config
    assert "matching" in config
    assert "files" in config
    assert "api" in config


def test_get_config():
    """Test getting cached config."""
    from lostfound.utils.config_loader import get_config, load_config
    load_config("config/config.yaml")

    config = get_config()
    assert config is not None
    assert config["vision"]["endpoint"] == "https://vision.googleapis.com/v1/images:annotate"


def test_vision_config(monkeypatch):
    """Test vision configuration values."""
    from lostfound.utils.config_loader import load_config
    for var in ("GOOGLE_VISION_API_KEY", "VISION_TIMEOUT", "VISION_MAX_RETRIES"):
        monkeypatch.delenv(var, raising=False)

    vision = load_config("config/config.yaml")["vision"]

    assert vision["api_key"] == ""
    assert vision["timeout"] == 15.0
    assert vision["max_results"] == 20
    assert vision["max_retries"] == 3


def test_matching_config(monkeypatch):
    """Test matching defaults."""
    from lostfound.utils.config_loader import load_config
    monkeypatch.delenv("MATCH_THRESHOLD", raising=False)

    matching = load_config("config/config.yaml")["matching"]

    assert matching["threshold"] == 50.0
    assert matching["limit"] == 10


def test_env_var_resolution():
    """Test environment variable resolution."""
    from lostfound.utils.config_loader import load_config

    # Set env var
    os.environ["GOOGLE_VISION_API_KEY"] = "secret-key"
    os.environ["VISION_TIMEOUT"] = "2.5"
    try:
        config = load_config("config/config.yaml")
    finally:
        # Cleanup
        del os.environ["GOOGLE_VISION_API_KEY"]
        del os.environ["VISION_TIMEOUT"]

    assert config["vision"]["api_key"] == "secret-key"
    assert config["vision"]["timeout"] == 2.5


def test_empty_env_var_uses_default(monkeypatch):
    """A set but empty variable falls back to the ${VAR:-default} value."""
    from lostfound.utils.config_loader import load_config
    monkeypatch.setenv("MATCH_THRESHOLD", "")
    monkeypatch.setenv("VISION_TIMEOUT", "")

    config = load_config("config/config.yaml")

    assert config["matching"]["threshold"] == 50.0
    assert config["vision"]["timeout"] == 15.0


def test_empty_numeric_value_is_dropped(tmp_path, monkeypatch):
    """An empty numeric value is left to the caller's default."""
    from lostfound.utils.config_loader import load_config
    monkeypatch.delenv("UNSET_RETRIES", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("vision:\n  max_retries: ${UNSET_RETRIES:-}\n")

    config = load_config(str(path))

    assert "max_retries" not in config["vision"]
