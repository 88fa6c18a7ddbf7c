from gateway_currency.services.presentation import (
    PricePresentation,
    TotalRow,
    extract_amount,
    render_fragment,
    substitute_amount,
)

XCD_500 = (
    '<span class="amount"><span class="currency-symbol">$</span>'
    '500.00&nbsp;<span id="currency-code">XCD</span></span>'
)


def test_render_matches_storefront_markup():
    assert PricePresentation(500, "XCD").render() == XCD_500


def test_render_negative_and_grouped_amounts():
    rendered = PricePresentation(-1234.5, "XCD").render()
    assert rendered.startswith('<span class="amount">-<span class="currency-symbol">')
    assert "1,234.50&nbsp;" in rendered


def test_extract_amount_between_markers():
    assert extract_amount(XCD_500) == "500.00"
    assert extract_amount(PricePresentation(1234.5, "USD").render()) == "1,234.50"


def test_extract_amount_without_markers_is_none():
    assert extract_amount("$500.00 XCD") is None
    assert extract_amount("<span>x</span>&nbsp;<span id='c'>") is None


def test_substitute_keeps_surrounding_markup():
    settled = PricePresentation(184.89, "XCD").render()
    replaced = substitute_amount(settled, 500.00)
    assert replaced == XCD_500


def test_substitute_only_touches_marked_segment():
    formatted = "Total 184.89 " + PricePresentation(184.89, "XCD").render() + " (184.89)"
    replaced = substitute_amount(formatted, 500.00)
    assert replaced.startswith("Total 184.89 ")
    assert replaced.endswith(" (184.89)")
    assert "500.00&nbsp;" in replaced


def test_substitute_without_amount_returns_none():
    assert substitute_amount("184.89 USD", 500.00) is None
    assert substitute_amount("<span>$</span>&nbsp;<span id=\"c\">", 500.00) is None


def test_numeric_entity_separator_is_not_part_of_amount():
    formatted = (
        '<span class="amount"><span class="currency-symbol">$</span>'
        '184.89&#160;<span id="currency-code">XCD</span></span>'
    )
    assert extract_amount(formatted) == "184.89"
    replaced = substitute_amount(formatted, 500.00)
    assert replaced == formatted.replace("184.89", "500.00")
    assert "&#160;" in replaced


def test_leading_numeric_entity_is_skipped():
    formatted = '<span>$</span>&#160;12.50<span id="currency-code">USD</span>'
    assert extract_amount(formatted) == "12.50"
    assert substitute_amount(formatted, 1.0) == formatted.replace("12.50", "1.00")


def test_with_amount_keeps_currency_and_symbol():
    price = PricePresentation(1.0, "USD", symbol="US$").with_amount(2.5)
    assert (price.amount, price.currency, price.symbol) == (2.5, "USD", "US$")


def test_total_row_detects_refunds():
    assert TotalRow("refund_0", "Refund:", "").is_refund
    assert not TotalRow("order_total", "Total:", "").is_refund


def test_addendum_fragment_renders_price_unescaped():
    html = render_fragment(
        "addendum_email.html", price=PricePresentation(184.89, "USD")
    )
    assert "<strong>Amount Paid in USD:</strong>" in html
    assert '<span id="currency-code">USD</span>' in html
    assert "&lt;span" not in html
