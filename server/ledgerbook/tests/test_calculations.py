from decimal import Decimal

import pytest

from ledgerbook.errors import ValidationError
from ledgerbook.sales.calculations import (
    LineItemInput,
    aggregate_document_totals,
    calculate,
    calculate_line,
    validate_line_items,
)


def test_discount_applies_before_tax():
    amounts = calculate(10, 100, 10, 18)

    assert amounts.gross_amount == Decimal("1000")
    assert amounts.discount_amount == Decimal("100")
    assert amounts.taxable_amount == Decimal("900")
    assert amounts.tax_amount == Decimal("162")
    assert amounts.line_total == Decimal("1062")


@pytest.mark.parametrize(
    "quantity, price, discount, tax",
    [
        ("1", "0", "0", "0"),
        ("3", "19.99", "12.5", "17"),
        ("0.5", "1234.56", "100", "18"),
        ("250", "7.35", "0", "100"),
    ],
)
def test_line_total_matches_closed_form(quantity, price, discount, tax):
    q, p, d, t = (Decimal(value) for value in (quantity, price, discount, tax))
    expected = q * p * (1 - d / 100) * (1 + t / 100)
    assert abs(calculate(quantity, price, discount, tax).line_total - expected) < Decimal("1e-9")


def test_zero_price_line_is_all_zero():
    amounts = calculate(5, 0, 10, 18)
    assert amounts.gross_amount == 0
    assert amounts.discount_amount == 0
    assert amounts.tax_amount == 0
    assert amounts.line_total == 0


def test_non_numeric_input_counts_as_zero():
    amounts = calculate("abc", "100", None, "")
    assert amounts.gross_amount == 0
    assert amounts.line_total == 0

    amounts = calculate("2", "50.25", "oops", "10")
    assert amounts.discount_amount == 0
    assert amounts.line_total == Decimal("110.55")


def test_line_amounts_are_unrounded_until_asked():
    amounts = calculate_line(LineItemInput(Decimal("3"), Decimal("33.333"), Decimal("0"), Decimal("17")))
    assert amounts.gross_amount == Decimal("99.999")
    assert amounts.rounded().gross_amount == Decimal("100.00")
    assert amounts.rounded().tax_amount == Decimal("17.00")


def test_empty_document_totals_are_zero():
    totals = aggregate_document_totals([])
    assert totals.subtotal == 0
    assert totals.total_discount == 0
    assert totals.total_tax == 0
    assert totals.grand_total == 0


def test_document_totals_match_the_sum_of_line_totals():
    lines = [
        LineItemInput(Decimal("10"), Decimal("100"), Decimal("10"), Decimal("18")),
        LineItemInput(Decimal("2.5"), Decimal("40"), Decimal("0"), Decimal("17")),
        LineItemInput(Decimal("1"), Decimal("999.99"), Decimal("5"), Decimal("0")),
    ]
    totals = aggregate_document_totals(lines)

    assert totals.grand_total == totals.subtotal - totals.total_discount + totals.total_tax
    assert totals.grand_total == sum(calculate_line(line).line_total for line in lines)
    assert totals.subtotal == Decimal("1000") + Decimal("100") + Decimal("999.99")


def test_validate_line_items_requires_lines():
    with pytest.raises(ValidationError) as excinfo:
        validate_line_items([])
    assert "lines" in excinfo.value.errors


def test_validate_line_items_collects_every_field_error():
    with pytest.raises(ValidationError) as excinfo:
        validate_line_items(
            [
                {"quantity": 0, "unit_price": 10},
                {"quantity": "2", "unit_price": None, "discount_percentage": 150},
                {"quantity": "x", "unit_price": "-5", "tax_percentage": "-1"},
            ]
        )

    errors = excinfo.value.errors
    assert set(errors) == {
        "lines[0].quantity",
        "lines[1].unit_price",
        "lines[1].discount_percentage",
        "lines[2].quantity",
        "lines[2].unit_price",
        "lines[2].tax_percentage",
    }


def test_validate_line_items_accepts_a_clean_line():
    validate_line_items([{"quantity": "1", "unit_price": "0", "discount_percentage": 0, "tax_percentage": 100}])


def test_rounded_totals_add_up_when_the_discount_is_half_a_cent():
    totals = aggregate_document_totals([LineItemInput(Decimal("1"), Decimal("10.00"), Decimal("0.05"), Decimal("0"))])

    rounded = totals.rounded()
    assert rounded.subtotal == Decimal("10.00")
    assert rounded.total_discount == Decimal("0.01")
    assert rounded.grand_total == Decimal("9.99")


@pytest.mark.parametrize(
    "lines",
    [
        [("3", "19.99", "12.5", "17"), ("7", "3.33", "0.5", "16")],
        [("1", "10.00", "0.05", "0"), ("1", "0.03", "0", "50"), ("2", "0.05", "0", "50")],
        [("0.33", "1.01", "33.33", "17"), ("1.5", "2.675", "0", "18")],
    ],
)
def test_rounded_document_totals_have_no_drift(lines):
    inputs = [LineItemInput(*(Decimal(value) for value in line)) for line in lines]
    rounded = aggregate_document_totals(inputs).rounded()

    assert rounded.grand_total == rounded.subtotal - rounded.total_discount + rounded.total_tax
    line_totals = sum(calculate_line(line).rounded().line_total for line in inputs)
    assert abs(rounded.grand_total - line_totals) <= Decimal("0.01") * len(inputs)


def test_rounded_line_amounts_add_up():
    amounts = calculate_line(LineItemInput(Decimal("1"), Decimal("0.03"), Decimal("0"), Decimal("50"))).rounded()
    assert amounts.tax_amount == Decimal("0.02")
    assert amounts.line_total == amounts.taxable_amount + amounts.tax_amount == Decimal("0.05")
