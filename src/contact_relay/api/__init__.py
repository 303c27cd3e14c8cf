"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /contact - Contact form relay
- /health - Liveness probe
- /metrics - Prometheus metrics
"""
from .contact import router as contact_router
from .health import router as health_router
from .metrics import router as metrics_router

__all__ = ["contact_router", "health_router", "metrics_router"]
