import pytest

import mutarith
from mutarith._internal import config


@pytest.fixture(autouse=True)
def _restore_settings(monkeypatch):
    for name in ("MUTARITH_NUMPY_FAST_PATH", "MUTARITH_WARN_ON_FALLBACK", "MUTARITH_EDGE_ITEMS"):
        monkeypatch.delenv(name, raising=False)
    config.reset()
    yield
    monkeypatch.undo()
    config.reset()


def test_defaults():
    s = mutarith.settings()
    assert s.numpy_fast_path is True
    assert s.warn_on_fallback is True
    assert s.edge_items == 4


@pytest.mark.parametrize("raw, expected", [("0", False), ("off", False), (" False ", False), ("1", True), ("", True)])
def test_env_flags(monkeypatch, raw, expected):
    monkeypatch.setenv("MUTARITH_WARN_ON_FALLBACK", raw)
    assert config.reset().warn_on_fallback is expected


@pytest.mark.parametrize("raw, expected", [("2", 2), ("-3", 4), ("many", 4)])
def test_env_edge_items(monkeypatch, raw, expected):
    monkeypatch.setenv("MUTARITH_EDGE_ITEMS", raw)
    assert config.reset().edge_items == expected


def test_env_disables_fast_path(monkeypatch):
    monkeypatch.setenv("MUTARITH_NUMPY_FAST_PATH", "no")
    config.reset()
    import numpy as np

    x = mutarith.vector(np.array([1.0, 2.0]))
    mutarith.operate(mutarith.add, x, x)
    assert mutarith._debug_last_dispatch_trace() == "elementwise:add"


def test_configure_updates_and_validates():
    s = mutarith.configure(edge_items=2, warn_on_fallback=False)
    assert s is mutarith.settings()
    assert s.edge_items == 2 and s.warn_on_fallback is False
    with pytest.raises(ValueError):
        mutarith.configure(edge_items=0)
    assert s.edge_items == 2


def test_configure_none_leaves_settings():
    before = (config.settings.numpy_fast_path, config.settings.warn_on_fallback, config.settings.edge_items)
    mutarith.configure()
    assert (config.settings.numpy_fast_path, config.settings.warn_on_fallback, config.settings.edge_items) == before


def test_disabling_fast_path_warns_once():
    with pytest.warns(mutarith.MutArithPerformanceWarning):
        mutarith.configure(numpy_fast_path=False)
    import warnings

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        mutarith.configure(numpy_fast_path=False)
