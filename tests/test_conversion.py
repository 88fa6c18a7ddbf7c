import pytest

from gateway_currency.services.money import (
    convert_amount,
    format_amount,
    parse_amount,
    round2,
)
from gateway_currency.services.rates.conversion import build_converter
from gateway_currency.services.rates.providers import (
    IndependentRateProvider,
    ReciprocalRateProvider,
)


def test_round2_is_half_up():
    assert round2(0.125) == 0.13
    assert round2(2.675) == 2.68
    assert round2(-0.125) == -0.13


def test_convert_amount_rounds_product_half_up():
    assert convert_amount(100, 0.369787) == 36.98
    assert convert_amount(500, 0.369787) == 184.89
    assert convert_amount(0, 0.369787) == 0.0


def test_format_amount_uses_fixed_separators():
    assert format_amount(1234.5) == "1,234.50"
    assert format_amount(0) == "0.00"
    assert format_amount(1000000) == "1,000,000.00"
    assert parse_amount("1,234.50") == 1234.5
    with pytest.raises(ValueError):
        parse_amount("")
    with pytest.raises(ValueError):
        parse_amount("1.2.3")


@pytest.mark.parametrize("mode", ["reciprocal", "independent"])
def test_both_directions_round_to_two_places(make_settings, mode):
    converter = build_converter(make_settings(rate_mode=mode))
    assert converter.to_settlement(100.00) == 36.98
    assert converter.to_display(100.00) == 270.43


def test_rate_modes_differ_on_large_amounts(make_settings):
    reciprocal = build_converter(make_settings(rate_mode="reciprocal"))
    independent = build_converter(make_settings(rate_mode="independent"))
    # 1 / 0.369787 is 2.7042594..., not the fixed 2.70426
    assert reciprocal.to_display(10000) == 27042.59
    assert independent.to_display(10000) == 27042.60
    assert reciprocal.to_settlement(10000) == independent.to_settlement(10000)


@pytest.mark.parametrize("mode", ["reciprocal", "independent"])
def test_round_trip_drifts_by_rounding(make_settings, mode):
    converter = build_converter(make_settings(rate_mode=mode))
    settled = converter.to_settlement(500.00)
    back = converter.to_display(settled)
    # Rounding the settlement amount to cents loses information: the trip back
    # does not land on the starting figure, only near it.
    assert settled == 184.89
    assert back == 499.99
    assert back != 500.00
    assert abs(back - 500.00) < 0.02
    assert converter.to_settlement(back) == settled


def test_conversion_is_referentially_transparent(settings):
    converter = build_converter(settings)
    results = {converter.to_settlement(123.45) for _ in range(5)}
    assert results == {45.65}


def test_checkout_total_carries_currency_codes(settings):
    total = build_converter(settings).checkout_total(500.00)
    assert total.display_total == 500.00
    assert total.settlement_total == 184.89
    assert total.display_currency == "XCD"
    assert total.settlement_currency == "USD"


def test_providers_reject_non_positive_rates():
    with pytest.raises(ValueError):
        ReciprocalRateProvider(0)
    with pytest.raises(ValueError):
        IndependentRateProvider(0.369787, -1)
