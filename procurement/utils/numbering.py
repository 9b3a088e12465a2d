import uuid
from datetime import datetime

import pytz

from procurement.config import settings


def local_now() -> datetime:
    return datetime.now(pytz.timezone(settings.TIMEZONE))


def generate_document_number(prefix: str) -> str:
    """PREFIX-YYYYMM-xxxxxx, e.g. PO-202610-3f9a1c"""
    now = local_now()
    return f"{prefix}-{now.year}{now.month:02d}-{uuid.uuid4().hex[:6]}"


def default_batch_number(invoice_id: int, line_no: int) -> str:
    return f"{settings.BATCH_PREFIX}-{invoice_id}-{line_no}"
