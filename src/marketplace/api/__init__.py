"""Marketplace API package."""

from marketplace.api.errors import register_error_handlers
from marketplace.api.routes import (
    file_router,
    gig_router,
    maintenance_router,
    member_router,
    order_router,
    payment_router,
    wallet_router,
)

__all__ = [
    "member_router",
    "gig_router",
    "order_router",
    "wallet_router",
    "maintenance_router",
    "file_router",
    "payment_router",
    "register_error_handlers",
]
