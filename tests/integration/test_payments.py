"""
Integration tests for the purchase payment ledger.
"""
from datetime import date

import pytest
from sqlalchemy import func

from procurement.exceptions import NotFound, ValidationFailed
from procurement.payments import models as payment_models
from procurement.payments import schemas as payment_schemas
from procurement.payments import service as payment_service


@pytest.fixture
def invoice(make_order, make_receipt, local_vendor, rice):
    """Scenario B invoice: 6 x 100 at 18%, total 708."""
    order = make_order(local_vendor, [{"item_id": rice.id, "quantity": 10, "rate": 100}])
    return make_receipt([{"item_id": rice.id, "quantity": 6, "rate": 100}], po_id=order.id)


def _sum_of_rows(db, invoice_id):
    total = db.query(func.coalesce(func.sum(payment_models.PurchasePayment.amount), 0)).filter(
        payment_models.PurchasePayment.invoice_id == invoice_id
    ).scalar()
    return round(float(total), 2)


def _assert_consistent(db, invoice):
    assert invoice.paid_amount == _sum_of_rows(db, invoice.id)
    assert invoice.pending_amount == round(invoice.total_amount - invoice.paid_amount, 2)


@pytest.mark.integration
class TestRecordPayment:

    def test_partial_then_full_payment(self, db_session, invoice, pay):
        # Scenario D
        first = pay(invoice, 500, payment_method="upi", reference_number="UPI-771")

        assert first.payment_number.startswith("PAY-")
        assert first.invoice_status == "partial"
        assert invoice.paid_amount == 500
        assert invoice.pending_amount == 208
        assert invoice.payment_status == "partial"
        _assert_consistent(db_session, invoice)

        pay(invoice, 208)

        assert invoice.paid_amount == 708
        assert invoice.pending_amount == 0
        assert invoice.payment_status == "paid"
        _assert_consistent(db_session, invoice)

    @pytest.mark.parametrize("amount", [0, -10])
    def test_non_positive_amount_rejected(self, db_session, invoice, pay, amount):
        with pytest.raises(ValidationFailed):
            pay(invoice, amount)
        assert _sum_of_rows(db_session, invoice.id) == 0

    def test_overpayment_rejected(self, db_session, invoice, pay):
        pay(invoice, 500)

        with pytest.raises(ValidationFailed):
            pay(invoice, 208.01)

        assert invoice.paid_amount == 500
        _assert_consistent(db_session, invoice)

    def test_unknown_method_rejected(self, invoice, pay):
        with pytest.raises(ValidationFailed):
            pay(invoice, 100, payment_method="barter")

    def test_missing_invoice(self, db_session):
        with pytest.raises(NotFound):
            payment_service.record_payment(
                db_session, 404, payment_schemas.PaymentCreate(amount=1)
            )


@pytest.mark.integration
class TestReversePayment:

    def test_deleting_second_payment(self, db_session, invoice, pay):
        # Scenario E
        pay(invoice, 500)
        second = pay(invoice, 208)

        result = payment_service.reverse_payment(db_session, second.id)

        assert result["paid_amount"] == 500
        assert result["pending_amount"] == 208
        assert result["payment_status"] == "partial"
        assert invoice.payment_status == "partial"
        _assert_consistent(db_session, invoice)

    def test_deleting_only_payment_returns_to_pending(self, db_session, invoice, pay):
        payment = pay(invoice, 100)

        payment_service.reverse_payment(db_session, payment.id)

        assert invoice.paid_amount == 0
        assert invoice.pending_amount == 708
        assert invoice.payment_status == "pending"

    def test_missing_payment(self, db_session):
        with pytest.raises(NotFound):
            payment_service.reverse_payment(db_session, 404)


@pytest.mark.integration
class TestRefunds:

    def test_refund_is_a_negative_row(self, db_session, invoice, pay):
        pay(invoice, 708)

        refund = payment_service.record_refund(
            db_session, invoice.id, payment_schemas.RefundCreate(amount=108, payment_method="bank_transfer")
        )

        assert refund.amount == -108
        assert refund.is_refund is True
        assert invoice.paid_amount == 600
        assert invoice.pending_amount == 108
        assert invoice.payment_status == "partial"
        _assert_consistent(db_session, invoice)

    def test_refund_more_than_paid_rejected(self, db_session, invoice, pay):
        pay(invoice, 100)
        with pytest.raises(ValidationFailed):
            payment_service.record_refund(
                db_session, invoice.id, payment_schemas.RefundCreate(amount=100.5)
            )

    def test_reversing_refund_cannot_overpay(self, db_session, invoice, pay):
        pay(invoice, 708)
        refund = payment_service.record_refund(
            db_session, invoice.id, payment_schemas.RefundCreate(amount=200)
        )
        pay(invoice, 200)

        with pytest.raises(ValidationFailed):
            payment_service.reverse_payment(db_session, refund.id)
        _assert_consistent(db_session, invoice)


@pytest.mark.integration
class TestAmendPayment:

    def test_amount_change_replaces_the_row(self, db_session, invoice, pay):
        payment = pay(invoice, 500, reference_number="CHQ-1")
        number = payment.payment_number

        amended = payment_service.amend_payment(
            db_session, payment.id, payment_schemas.PaymentUpdate(amount=300)
        )

        assert amended.payment_number == number
        assert amended.amount == 300
        assert amended.reference_number == "CHQ-1"
        assert invoice.paid_amount == 300
        assert invoice.pending_amount == 408
        assert db_session.query(payment_models.PurchasePayment).count() == 1
        _assert_consistent(db_session, invoice)

    def test_amend_checks_pending_without_the_old_row(self, db_session, invoice, pay):
        payment = pay(invoice, 500)
        pay(invoice, 100)

        amended = payment_service.amend_payment(
            db_session, payment.id, payment_schemas.PaymentUpdate(amount=608)
        )
        assert amended.amount == 608
        assert invoice.payment_status == "paid"

    def test_amend_to_overpay_rejected(self, db_session, invoice, pay):
        payment = pay(invoice, 500)
        pay(invoice, 100)

        with pytest.raises(ValidationFailed):
            payment_service.amend_payment(
                db_session, payment.id, payment_schemas.PaymentUpdate(amount=608.5)
            )
        assert invoice.paid_amount == 600
        _assert_consistent(db_session, invoice)

    def test_details_are_patched_in_place(self, db_session, invoice, pay):
        payment = pay(invoice, 500)

        amended = payment_service.amend_payment(
            db_session,
            payment.id,
            payment_schemas.PaymentUpdate(payment_method="cheque", payment_date=date(2026, 10, 12)),
        )

        assert amended.id == payment.id
        assert amended.payment_method == "cheque"
        assert amended.payment_date == date(2026, 10, 12)
        assert invoice.paid_amount == 500


@pytest.mark.integration
def test_unpaid_listing(db_session, invoice, pay):
    from procurement.purchase import service as purchase_service

    assert [i.id for i in purchase_service.list_unpaid_invoices(db_session)] == [invoice.id]

    pay(invoice, 708)

    assert purchase_service.list_unpaid_invoices(db_session) == []
