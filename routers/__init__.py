# routers/__init__.py
from .analytics import router as analytics_router
from .banks import router as banks_router
from .dashboard import router as dashboard_router
from .groups import router as groups_router
from .members import router as members_router
from .messages import router as messages_router
from .payment_logs import router as payment_logs_router
from .payment_requests import router as payment_requests_router
from .payments import router as payments_router

__all__ = [
     "analytics_router",
     "banks_router",
     "dashboard_router",
     "groups_router",
     "members_router",
     "messages_router",
     "payment_logs_router",
     "payment_requests_router",
     "payments_router",
]
