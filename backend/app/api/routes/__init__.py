"""API routes."""

from fastapi import APIRouter

from app.api.routes import (
    suppliers, inventory, purchase_orders, stock_receiving, settings, equipment,
)

api_router = APIRouter()

api_router.include_router(suppliers.router, prefix="/suppliers", tags=["suppliers"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(purchase_orders.router, prefix="/purchase-orders", tags=["purchase-orders"])
api_router.include_router(stock_receiving.router, prefix="/stock-receipts", tags=["stock-receiving"])
api_router.include_router(settings.router, prefix="/settings", tags=["settings"])
api_router.include_router(equipment.router, prefix="/equipment", tags=["equipment"])
