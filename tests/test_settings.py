from quoteedge.config import constants
from quoteedge.config.settings import Settings


def test_defaults():
    s = Settings()
    assert s.arbitrage.margin_threshold == constants.DEFAULT_ARB_MARGIN
    assert s.value.min_edge_percent == 3.0
    assert s.liquidity.whale_sizes == (1000.0, 5000.0, 10000.0)
    assert s.fetch.concurrency == 5


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("QUOTEEDGE_ARB_MARGIN", "0.01")
    monkeypatch.setenv("QUOTEEDGE_MIN_EDGE", "1.5")
    monkeypatch.setenv("QUOTEEDGE_FETCH_CONCURRENCY", "2")
    s = Settings.from_env()
    assert s.arbitrage.margin_threshold == 0.01
    assert s.value.min_edge_percent == 1.5
    assert s.fetch.concurrency == 2


def test_bad_env_value_keeps_default(monkeypatch):
    monkeypatch.setenv("QUOTEEDGE_ARB_MARGIN", "abc")
    monkeypatch.setenv("QUOTEEDGE_FETCH_CONCURRENCY", "five")
    monkeypatch.setenv("QUOTEEDGE_MIN_EDGE", "4")
    s = Settings.from_env()
    assert s.arbitrage.margin_threshold == constants.DEFAULT_ARB_MARGIN
    assert s.fetch.concurrency == constants.FETCH_BATCH_WIDTH
    assert s.value.min_edge_percent == 4.0
