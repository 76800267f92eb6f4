from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routers.checkout import router as checkout_router
from app.api.routers.fiscal_data import router as fiscal_data_router
from app.api.routers.health import router as health_router
from app.api.routers.payment_methods import router as payment_methods_router
from app.core.config import get_settings
from app.core.logging import setup_logging


settings = get_settings()
setup_logging(settings.log_level)

app = FastAPI(title="Subscription Checkout API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(checkout_router)
app.include_router(payment_methods_router)
app.include_router(fiscal_data_router)
