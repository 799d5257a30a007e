"""
Tests for RippleConfig.
"""

from dataclasses import FrozenInstanceError

import pytest

from ripple import RippleConfig, get_default_registry


@pytest.mark.unit
@pytest.mark.config
def test_defaults():
    """The default config has a short debounce and no caching"""
    config = RippleConfig()
    assert config.debounce == 0.01
    assert config.use_cache is False


@pytest.mark.unit
@pytest.mark.config
def test_config_is_frozen():
    """Config instances are immutable"""
    config = RippleConfig()
    with pytest.raises(FrozenInstanceError):
        config.debounce = 1


@pytest.mark.unit
@pytest.mark.config
def test_negative_debounce_rejected():
    """A negative debounce is rejected at construction"""
    with pytest.raises(ValueError):
        RippleConfig(debounce=-0.1)


@pytest.mark.unit
@pytest.mark.config
def test_from_env_reads_variables():
    """from_env parses RIPPLE_DEBOUNCE and RIPPLE_USE_CACHE"""
    config = RippleConfig.from_env({"RIPPLE_DEBOUNCE": "0.25", "RIPPLE_USE_CACHE": "yes"})
    assert config.debounce == 0.25
    assert config.use_cache is True


@pytest.mark.unit
@pytest.mark.config
def test_from_env_without_variables_uses_defaults():
    """from_env falls back to the defaults when nothing is set"""
    assert RippleConfig.from_env({}) == RippleConfig()


@pytest.mark.parametrize(
    "environ",
    [{"RIPPLE_DEBOUNCE": "soon"}, {"RIPPLE_USE_CACHE": "maybe"}],
)
@pytest.mark.unit
@pytest.mark.config
def test_from_env_rejects_garbage(environ):
    """Unparseable environment values raise ValueError"""
    with pytest.raises(ValueError):
        RippleConfig.from_env(environ)


@pytest.mark.unit
@pytest.mark.config
def test_default_registry_reads_environment(monkeypatch):
    """The default registry is configured from the environment"""
    monkeypatch.setenv("RIPPLE_DEBOUNCE", "0.5")
    monkeypatch.setenv("RIPPLE_USE_CACHE", "1")

    registry = get_default_registry()

    assert registry.config == RippleConfig(debounce=0.5, use_cache=True)
