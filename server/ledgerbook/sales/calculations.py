from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Sequence

from ledgerbook.errors import ValidationError
from ledgerbook.utils.money import ZERO, parse_amount, quantize_money, require_amount

HUNDRED = Decimal("100")


@dataclass(frozen=True)
class LineItemInput:
    quantity: Decimal
    unit_price: Decimal
    discount_percentage: Decimal = ZERO
    tax_percentage: Decimal = ZERO


@dataclass(frozen=True)
class LineAmounts:
    gross_amount: Decimal
    discount_amount: Decimal
    taxable_amount: Decimal
    tax_amount: Decimal
    line_total: Decimal

    def rounded(self) -> "LineAmounts":
        """Rounds the parts; taxable amount and line total are rebuilt from them so the cents add up."""
        gross_amount = quantize_money(self.gross_amount)
        discount_amount = quantize_money(self.discount_amount)
        tax_amount = quantize_money(self.tax_amount)
        return LineAmounts(
            gross_amount=gross_amount,
            discount_amount=discount_amount,
            taxable_amount=gross_amount - discount_amount,
            tax_amount=tax_amount,
            line_total=gross_amount - discount_amount + tax_amount,
        )


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    total_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal

    def rounded(self) -> "DocumentTotals":
        """Stored totals. The grand total is derived from the rounded parts, never rounded on its own."""
        subtotal = quantize_money(self.subtotal)
        total_discount = quantize_money(self.total_discount)
        total_tax = quantize_money(self.total_tax)
        return DocumentTotals(
            subtotal=subtotal,
            total_discount=total_discount,
            total_tax=total_tax,
            grand_total=subtotal - total_discount + total_tax,
        )


def calculate_line(line: LineItemInput) -> LineAmounts:
    """Discount first, then tax on the discounted amount. Nothing is rounded here."""
    gross_amount = line.quantity * line.unit_price
    discount_amount = gross_amount * line.discount_percentage / HUNDRED
    taxable_amount = gross_amount - discount_amount
    tax_amount = taxable_amount * line.tax_percentage / HUNDRED
    return LineAmounts(
        gross_amount=gross_amount,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax_amount=tax_amount,
        line_total=taxable_amount + tax_amount,
    )


def line_input_from_payload(data: dict) -> LineItemInput:
    return LineItemInput(
        quantity=parse_amount(data.get("quantity")),
        unit_price=parse_amount(data.get("unit_price")),
        discount_percentage=parse_amount(data.get("discount_percentage")),
        tax_percentage=parse_amount(data.get("tax_percentage")),
    )


def calculate(quantity, unit_price, discount_percentage=0, tax_percentage=0) -> LineAmounts:
    return calculate_line(
        line_input_from_payload(
            {
                "quantity": quantity,
                "unit_price": unit_price,
                "discount_percentage": discount_percentage,
                "tax_percentage": tax_percentage,
            }
        )
    )


def aggregate_document_totals(lines: Iterable[LineItemInput]) -> DocumentTotals:
    subtotal = ZERO
    total_discount = ZERO
    total_tax = ZERO
    for line in lines:
        amounts = calculate_line(line)
        subtotal += amounts.gross_amount
        total_discount += amounts.discount_amount
        total_tax += amounts.tax_amount
    return DocumentTotals(
        subtotal=subtotal,
        total_discount=total_discount,
        total_tax=total_tax,
        grand_total=subtotal - total_discount + total_tax,
    )


def _collect(errors: Dict[str, str], value, field: str, **limits) -> None:
    try:
        require_amount(value, field, **limits)
    except ValidationError as exc:
        errors.update(exc.errors)


def validate_line_items(lines: Sequence[dict]) -> None:
    """Strict form checks on raw line payloads; every problem is collected before raising."""
    if not lines:
        raise ValidationError({"lines": "At least one line item is required."})

    errors: Dict[str, str] = {}
    for index, line in enumerate(lines):
        prefix = f"lines[{index}]"
        _collect(errors, line.get("quantity"), f"{prefix}.quantity", minimum=ZERO, allow_zero=False)
        if line.get("unit_price") is None or line.get("unit_price") == "":
            errors[f"{prefix}.unit_price"] = "Unit price is required."
        else:
            _collect(errors, line.get("unit_price"), f"{prefix}.unit_price", minimum=ZERO)
        for key in ("discount_percentage", "tax_percentage"):
            if line.get(key) is not None:
                _collect(errors, line.get(key), f"{prefix}.{key}", minimum=ZERO, maximum=HUNDRED)

    if errors:
        raise ValidationError(errors)
