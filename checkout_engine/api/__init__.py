# checkout_engine/api/__init__.py
from fastapi import APIRouter

from checkout_engine.api.routers import carts, health, orders, payments

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(carts.router)
api_router.include_router(orders.router)
api_router.include_router(payments.router)
