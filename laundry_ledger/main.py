import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from laundry_ledger import models  # registers every table on Base
from laundry_ledger.api.routes import (
    auth,
    bills,
    clients,
    orders,
    products,
    reports,
    transactions,
)
from laundry_ledger.core.config import settings
from laundry_ledger.core.errors import LedgerError, ledger_error_handler
from laundry_ledger.db.base import Base
from laundry_ledger.db.session import engine

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Laundry Ledger", debug=settings.DEBUG)

# ===============================
# CORS CONFIGURATION
# ===============================
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===============================
# CREATE DATABASE TABLES
# ===============================
Base.metadata.create_all(bind=engine)

# ===============================
# ERRORS
# ===============================
app.add_exception_handler(LedgerError, ledger_error_handler)

# ===============================
# INCLUDE ROUTERS
# ===============================
app.include_router(auth.router)
app.include_router(clients.router)
app.include_router(bills.router)
app.include_router(orders.router)
app.include_router(transactions.router)
app.include_router(products.router)
app.include_router(reports.router)

logger.info("Laundry ledger started (%s)", settings.ENVIRONMENT)


# ===============================
# ROOT ENDPOINT
# ===============================
@app.get("/")
def root():
    return {"status": "Backend running successfully"}
