import pytest

from gateway_currency.core.config import Settings


def test_defaults(settings, tmp_path):
    assert settings.db_path == tmp_path / "test.sqlite3"
    assert (settings.display_currency, settings.settlement_currency) == ("XCD", "USD")
    assert settings.rate_mode == "reciprocal"
    assert settings.missing_totals_policy == "raise"
    assert settings.checkout_context_ttl_seconds == 1800


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("DISPLAY_CURRENCY", "ttd")
    monkeypatch.setenv("RATE_MODE", "independent")
    settings = Settings(data_dir=tmp_path)
    settings.init_post_load()
    assert settings.display_currency == "TTD"
    assert settings.rate_mode == "independent"


@pytest.mark.parametrize(
    "overrides",
    [
        {"rate_mode": "live"},
        {"missing_totals_policy": "ignore"},
        {"display_to_settlement_rate": 0},
        {"settlement_currency": "xcd"},
        {"checkout_context_ttl_seconds": 0},
        {"analytics_table": "stats; DROP TABLE orders"},
    ],
)
def test_invalid_settings(make_settings, overrides):
    with pytest.raises(ValueError):
        make_settings(**overrides)
