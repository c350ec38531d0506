import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routers import (
    chart_of_accounts,
    journal_entries,
    payments,
    purchase_invoices,
    purchase_orders,
    sales,
    sales_orders,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]

app = FastAPI(title="Ledgerbook API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(chart_of_accounts.router)
app.include_router(journal_entries.router)
app.include_router(sales.router)
app.include_router(purchase_orders.router)
app.include_router(sales_orders.router)
app.include_router(purchase_invoices.router)
app.include_router(payments.router)


@app.get("/")
def root():
    return {"status": "ok"}
