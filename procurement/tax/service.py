"""
GST split for purchase documents.

Pure functions: the same lines and flags always give the same totals. Lines can
be request schemas or ORM rows, anything with quantity, rate and gst_rate.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from procurement.config import settings
from procurement.exceptions import ValidationFailed
from procurement.tax.schemas import TaxAdjustments, TaxTotals


def _money(value: float) -> float:
    return round(value, 2)


def round_off_for(amount: float) -> float:
    """Adjustment that brings amount to the nearest whole rupee (half up)."""
    rounded = Decimal(str(amount)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return _money(float(rounded) - amount)


def _check_line(line) -> None:
    if line.quantity is None or line.quantity < 0:
        raise ValidationFailed("Quantity cannot be negative")
    if line.rate is None or line.rate < 0:
        raise ValidationFailed("Rate cannot be negative")
    if (line.gst_rate or 0) < 0:
        raise ValidationFailed("GST rate cannot be negative")


def line_taxable(quantity: float, rate: float) -> float:
    return quantity * rate


def line_gst(quantity: float, rate: float, gst_rate: float) -> float:
    return quantity * rate * (gst_rate or 0) / 100


def line_amount(quantity: float, rate: float, gst_rate: float) -> float:
    return _money(line_taxable(quantity, rate) + line_gst(quantity, rate, gst_rate))


def compute_totals(
    lines: Iterable,
    is_intrastate: bool,
    adjustments: Optional[TaxAdjustments] = None,
) -> TaxTotals:
    adjustments = adjustments or TaxAdjustments()
    if adjustments.additional_charges < 0:
        raise ValidationFailed("Additional charges cannot be negative")
    if adjustments.discount_amount < 0:
        raise ValidationFailed("Discount cannot be negative")

    subtotal = 0.0
    total_gst = 0.0
    for line in lines:
        _check_line(line)
        subtotal += line_taxable(line.quantity, line.rate)
        total_gst += line_gst(line.quantity, line.rate, line.gst_rate)

    subtotal = _money(subtotal)
    total_gst = _money(total_gst)

    if is_intrastate:
        cgst = _money(total_gst / 2)
        # sgst takes the odd paisa so the split always sums to total_gst
        sgst = _money(total_gst - cgst)
        igst = 0.0
    else:
        cgst = 0.0
        sgst = 0.0
        igst = total_gst

    gross = _money(subtotal + total_gst + adjustments.additional_charges)
    if adjustments.discount_amount > gross + settings.AMOUNT_TOLERANCE:
        raise ValidationFailed(
            f"Discount ({adjustments.discount_amount:.2f}) cannot exceed the bill amount ({gross:.2f})"
        )

    total = _money(gross - adjustments.discount_amount)
    round_off = round_off_for(total) if adjustments.apply_round_off else 0.0
    total = _money(total + round_off)

    return TaxTotals(
        subtotal=subtotal,
        cgst_amount=cgst,
        sgst_amount=sgst,
        igst_amount=igst,
        total_gst=total_gst,
        additional_charges=_money(adjustments.additional_charges),
        discount_amount=_money(adjustments.discount_amount),
        round_off=round_off,
        total_amount=total,
        is_intrastate=is_intrastate,
    )
