# app/routers/__init__.py

from .subscriptions.subscription_router import router as subscription_router
from .webhooks.razorpay_webhook_router import router as razorpay_webhook_router

from .masters.client_router import router as client_router

from .billing.invoice_router import router as invoice_router
from .billing.dashboard_router import router as dashboard_router

from .support.activity_router import router as activity_router


__all__ = [
"subscription_router",
"razorpay_webhook_router",

"client_router",

"invoice_router",
"dashboard_router",

"activity_router",
]
