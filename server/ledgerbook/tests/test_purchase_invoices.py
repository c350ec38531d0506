from datetime import date, timedelta
from decimal import Decimal

import pytest

from ledgerbook.errors import PolicyError, ValidationError
from ledgerbook.models import Account, Item, JournalEntry, Vendor
from ledgerbook.purchase_invoices.service import (
    cancel_purchase_invoice,
    create_bill_from_purchase_order,
    create_purchase_invoice,
    list_purchase_invoices,
    post_purchase_invoice,
    record_bill_payment,
    update_purchase_invoice,
)
from ledgerbook.purchasing.service import (
    approve_purchase_order,
    create_purchase_order,
    receive_purchase_order,
    send_purchase_order,
    submit_purchase_order,
)


def account(db, code):
    return db.query(Account).filter(Account.code == code).one()


def create_vendor(db, name="Lahore Mills"):
    vendor = Vendor(name=name, email="orders@lahoremills.pk", is_active=True)
    db.add(vendor)
    db.flush()
    return vendor


def create_item(db, name="Cotton Yarn"):
    item = Item(name=name, unit_price=Decimal("100.00"), purchase_price=Decimal("70.00"), tax_percentage=Decimal("17"))
    db.add(item)
    db.flush()
    return item


def bill_payload(vendor, item, **extra):
    return {
        "vendor_id": vendor.id,
        "vendor_invoice_number": "LM-8841",
        "invoice_date": date.today(),
        "due_date": date.today() + timedelta(days=30),
        "lines": [{"item_id": item.id, "quantity": "10", "discount_percentage": "5"}],
        **extra,
    }


def posted_bill(db, **extra):
    bill = create_purchase_invoice(db, bill_payload(create_vendor(db), create_item(db), **extra))
    post_purchase_invoice(db, bill)
    return bill


def received_po(db):
    vendor = create_vendor(db)
    item = create_item(db)
    po = create_purchase_order(
        db,
        {
            "vendor_id": vendor.id,
            "order_date": date(2026, 4, 1),
            "lines": [{"item_id": item.id, "quantity": "10", "discount_percentage": "5"}],
        },
    )
    submit_purchase_order(db, po)
    approve_purchase_order(db, po)
    send_purchase_order(db, po)
    receive_purchase_order(db, po, {"lines": [{"line_id": po.lines[0].id, "qty_received": Decimal("10")}]})
    return po


def test_create_bill_prices_lines_at_purchase_price(db):
    bill = create_purchase_invoice(db, bill_payload(create_vendor(db), create_item(db)))

    assert bill.invoice_no == f"PINV-{date.today().year}-0001"
    assert bill.status == "DRAFT"
    assert bill.lines[0].unit_price == Decimal("70.00")
    assert bill.subtotal == Decimal("700.00")
    assert bill.total_discount == Decimal("35.00")
    assert bill.total_tax == Decimal("113.05")
    assert bill.grand_total == bill.amount_due == Decimal("778.05")


def test_posting_debits_inventory_and_input_tax(db):
    bill = posted_bill(db)

    assert bill.status == "POSTED"
    entry = db.query(JournalEntry).filter(JournalEntry.id == bill.journal_entry_id).one()
    assert entry.entry_type == "PURCHASE"
    assert entry.reference_type == "PURCHASE_INVOICE"
    assert entry.reference_no == bill.invoice_no
    assert account(db, "1300").current_balance == Decimal("665.00")
    assert account(db, "1500").current_balance == Decimal("113.05")
    assert account(db, "2000").current_balance == Decimal("778.05")

    with pytest.raises(PolicyError):
        post_purchase_invoice(db, bill)
    with pytest.raises(PolicyError):
        update_purchase_invoice(db, bill, {"notes": "late edit"})


def test_bill_can_debit_an_expense_account(db):
    rent = account(db, "6100")
    bill = posted_bill(db, debit_account_id=rent.id)

    assert bill.debit_account_id == rent.id
    assert rent.current_balance == Decimal("665.00")
    assert account(db, "1300").current_balance == 0


def test_bill_rejects_a_revenue_debit_account(db):
    vendor = create_vendor(db)
    item = create_item(db)

    with pytest.raises(ValidationError) as excinfo:
        create_purchase_invoice(db, bill_payload(vendor, item, debit_account_id=account(db, "4000").id))
    assert "debit_account_id" in excinfo.value.errors

    with pytest.raises(ValidationError) as excinfo:
        create_purchase_invoice(db, bill_payload(vendor, item, vendor_id=None))
    assert "vendor_id" in excinfo.value.errors


def test_bill_payments_clear_accounts_payable(db):
    bill = posted_bill(db)

    record_bill_payment(db, bill, Decimal("300.00"))
    assert bill.status == "PARTIALLY_PAID"
    assert bill.amount_due == Decimal("478.05")
    assert account(db, "2000").current_balance == Decimal("478.05")
    assert account(db, "1000").current_balance == Decimal("-300.00")

    with pytest.raises(ValidationError):
        record_bill_payment(db, bill, Decimal("500.00"))
    with pytest.raises(PolicyError):
        cancel_purchase_invoice(db, bill)

    record_bill_payment(db, bill, Decimal("478.05"), reference="CHQ-7781")
    assert bill.status == "PAID"
    assert bill.amount_due == 0
    assert account(db, "2000").current_balance == 0
    assert {payment.reference for payment in bill.payments} == {"LM-8841", "CHQ-7781"}

    with pytest.raises(PolicyError):
        record_bill_payment(db, bill, Decimal("1.00"))


def test_cancel_reverses_the_bill_posting(db):
    bill = posted_bill(db)

    cancel_purchase_invoice(db, bill, "Goods returned")

    assert bill.status == "CANCELLED"
    assert bill.amount_due == 0
    assert bill.journal_entry.status == "REVERSED"
    assert account(db, "1300").current_balance == 0
    assert account(db, "1500").current_balance == 0
    assert account(db, "2000").current_balance == 0

    with pytest.raises(PolicyError):
        cancel_purchase_invoice(db, bill)


def test_overdue_filter_lists_unpaid_bills_past_due(db):
    bill = posted_bill(db, due_date=date.today() - timedelta(days=1))

    assert bill.status == "OVERDUE"
    assert list_purchase_invoices(db, overdue_on=date.today()) == [bill]
    assert list_purchase_invoices(db, status="draft") == []


def test_create_bill_from_received_purchase_order(db):
    po = received_po(db)
    payload = {
        "vendor_invoice_number": "LM-9001",
        "invoice_date": date(2026, 4, 10),
        "due_date": date(2026, 5, 10),
    }

    bill = create_bill_from_purchase_order(db, po, payload)

    assert bill.invoice_no == "PINV-2026-0001"
    assert bill.purchase_order_id == po.id
    assert bill.vendor_id == po.vendor_id
    assert bill.notes == f"Bill created from PO {po.order_number}"
    assert bill.grand_total == po.total_amount == Decimal("778.05")
    assert [(line.quantity, line.discount_percentage) for line in bill.lines] == [(Decimal("10"), Decimal("5"))]

    with pytest.raises(PolicyError, match="already billed"):
        create_bill_from_purchase_order(db, po, payload)

    cancel_purchase_invoice(db, bill)
    second = create_bill_from_purchase_order(db, po, payload)
    assert second.invoice_no == "PINV-2026-0002"


def test_create_bill_needs_a_received_order_and_vendor_reference(db):
    vendor = create_vendor(db)
    item = create_item(db)
    draft = create_purchase_order(
        db,
        {"vendor_id": vendor.id, "order_date": date(2026, 4, 1), "lines": [{"item_id": item.id, "quantity": "1"}]},
    )
    with pytest.raises(PolicyError, match="received"):
        create_bill_from_purchase_order(db, draft, {"vendor_invoice_number": "X", "invoice_date": date.today(), "due_date": date.today()})

    po = received_po(db)
    with pytest.raises(ValidationError) as excinfo:
        create_bill_from_purchase_order(db, po, {"invoice_date": date.today()})
    assert set(excinfo.value.errors) == {"vendor_invoice_number", "due_date"}
