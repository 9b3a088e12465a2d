import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Find .env even in frozen or packaged mode
POSSIBLE_ENV_PATHS = [
    Path(__file__).resolve().parent.parent / ".env",        # normal
    Path(sys.executable).resolve().parent / ".env",         # frozen exe
    Path.cwd() / ".env",                                    # runtime cwd
]

for env_path in POSSIBLE_ENV_PATHS:
    if env_path.exists():
        load_dotenv(env_path, override=False)
        break

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from procurement.config import settings
from procurement.database import Base, engine
from procurement.exceptions import ProcurementError

# Models must be imported before create_all so every table is registered
from procurement.vendor import models as vendor_models  # noqa: F401
from procurement.stock.items import models as item_models  # noqa: F401
from procurement.stock.inventory import models as inventory_models  # noqa: F401
from procurement.purchase_order import models as po_models  # noqa: F401
from procurement.purchase import models as purchase_models  # noqa: F401
from procurement.payments import models as payment_models  # noqa: F401

from procurement.tax.router import router as tax_router
from procurement.vendor.router import router as vendor_router
from procurement.stock.items.router import router as item_router
from procurement.stock.inventory.router import router as inventory_router
from procurement.purchase_order.router import router as purchase_order_router
from procurement.purchase.router import router as purchase_router
from procurement.payments.router import router as payment_router
from procurement.handoff.router import router as handoff_router


logger.add(
    settings.LOG_FILE,
    rotation=settings.LOG_ROTATION,
    level=settings.LOG_LEVEL,
    enqueue=True,
)


# Database startup
@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application startup")
    Base.metadata.create_all(bind=engine)
    yield
    logger.info("Application shutdown")


# Create app
app = FastAPI(
    title="ANGADI PROCUREMENT",
    description="Purchase orders, goods receipts, vendor payments and GST totals for the shop back office.",
    version="1.0.0",
    lifespan=lifespan
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # For production, change to specific domains
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ProcurementError)
async def procurement_error_handler(request: Request, exc: ProcurementError):
    if exc.status_code < 500:
        logger.warning(f"{request.method} {request.url.path} rejected: {exc.detail}")
    return await http_exception_handler(request, exc)


# Routers
app.include_router(tax_router, prefix="/tax", tags=["Tax"])
app.include_router(vendor_router, prefix="/vendor", tags=["Vendor"])
app.include_router(item_router, prefix="/stock/items", tags=["Stock - Items"])
app.include_router(inventory_router, prefix="/stock/inventory", tags=["Stock - Inventory"])
app.include_router(purchase_order_router, prefix="/purchase-orders", tags=["Purchase Orders"])
app.include_router(purchase_router, prefix="/purchase", tags=["Purchase"])
app.include_router(payment_router, prefix="/payments", tags=["Payments"])
app.include_router(handoff_router, prefix="/handoff", tags=["Handoff"])


@app.get("/health")
def health_check():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run(
        "procurement.main:app",
        host=os.getenv("SERVER_IP", "127.0.0.1"),
        port=int(os.getenv("SERVER_PORT", "8000")),
    )
