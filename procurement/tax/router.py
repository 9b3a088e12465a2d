from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from procurement.database import get_db
from procurement.tax import schemas, service as tax_service
from procurement.vendor import service as vendor_service

router = APIRouter()


@router.post("/preview", response_model=schemas.TaxTotals)
def preview_totals(request: schemas.TaxPreviewRequest, db: Session = Depends(get_db)):
    """
    Totals for a draft document, before anything is saved.
    """
    if request.vendor_id is not None:
        vendor = vendor_service.get_vendor_or_404(db, request.vendor_id)
        intrastate = vendor_service.vendor_is_intrastate(vendor)
    else:
        intrastate = request.is_intrastate

    return tax_service.compute_totals(
        request.lines,
        intrastate,
        schemas.TaxAdjustments(
            additional_charges=request.additional_charges,
            discount_amount=request.discount_amount,
            apply_round_off=request.apply_round_off,
        ),
    )
