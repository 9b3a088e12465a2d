"""
Order line ledger: ordered vs received quantity per purchase-order line.

Received quantities and the order status are a cache over the receipt lines
booked against the order. They are recomputed from those lines on every
receipt, never incremented in place, so a missed update cannot leave drift.

    pending --receipt--> partial --receipt--> received
       \\                   /
        +--> cancelled <---+
"""
from typing import Dict, Iterable, Mapping

from sqlalchemy import func
from sqlalchemy.orm import Session

from procurement.config import settings
from procurement.exceptions import ConsistencyError, ValidationFailed
from procurement.purchase.models import PurchaseInvoiceLine
from procurement.purchase_order.models import (
    PurchaseOrder,
    PurchaseOrderLine,
    PO_CANCELLED,
    PO_PARTIAL,
    PO_PENDING,
    PO_RECEIVED,
)


def _fully_received(line) -> bool:
    return (line.received_quantity or 0) >= (line.quantity or 0) - settings.AMOUNT_TOLERANCE


def derive_status(lines: Iterable, current_status: str = PO_PENDING) -> str:
    """
    received if every line is fully received, partial if anything has been
    received, otherwise the current status is kept (pending).
    """
    lines = list(lines)
    if current_status == PO_CANCELLED:
        return PO_CANCELLED
    if lines and all(_fully_received(line) for line in lines):
        return PO_RECEIVED
    if any((line.received_quantity or 0) > 0 for line in lines):
        return PO_PARTIAL
    return current_status if current_status in (PO_PENDING, PO_PARTIAL) else PO_PENDING


def ensure_receivable(order: PurchaseOrder) -> None:
    if order.status == PO_CANCELLED:
        raise ConsistencyError(f"Purchase order {order.po_number} is cancelled")
    if order.status == PO_RECEIVED:
        raise ConsistencyError(f"Purchase order {order.po_number} is already fully received")


def plan_receipt(
    order: PurchaseOrder,
    quantities: Mapping[int, float],
) -> Dict[int, PurchaseOrderLine]:
    """
    Check a receipt against the order before anything is written.

    quantities maps item_id to the quantity on this receipt. Returns the order
    line each item books against. Raises ConsistencyError for an item the order
    does not have and ValidationFailed when a line would be over-received.
    """
    ensure_receivable(order)

    lines_by_item = {line.item_id: line for line in order.lines}
    matched: Dict[int, PurchaseOrderLine] = {}

    for item_id, quantity in quantities.items():
        line = lines_by_item.get(item_id)
        if line is None:
            raise ConsistencyError(
                f"Item {item_id} is not on purchase order {order.po_number}"
            )

        received_after = (line.received_quantity or 0) + quantity
        if received_after > line.quantity + settings.AMOUNT_TOLERANCE:
            raise ValidationFailed(
                f"Cannot receive {quantity:g} of '{line.item_name or item_id}' on "
                f"{order.po_number}: ordered {line.quantity:g}, already received "
                f"{line.received_quantity or 0:g}"
            )
        matched[item_id] = line

    return matched


def refresh_order(db: Session, order: PurchaseOrder) -> str:
    """
    Recompute every line's received quantity from the receipt lines booked
    against it, then the order status. Pending changes must be flushed first.
    """
    totals = dict(
        db.query(
            PurchaseInvoiceLine.po_line_id,
            func.coalesce(func.sum(PurchaseInvoiceLine.quantity), 0),
        )
        .filter(PurchaseInvoiceLine.po_line_id.in_([line.id for line in order.lines]))
        .group_by(PurchaseInvoiceLine.po_line_id)
        .all()
    )

    for line in order.lines:
        received = float(totals.get(line.id, 0) or 0)
        if received > line.quantity + settings.AMOUNT_TOLERANCE:
            raise ValidationFailed(
                f"Line for item {line.item_id} on {order.po_number} would be over-received"
            )
        line.received_quantity = received

    order.status = derive_status(order.lines, order.status)
    return order.status
