"""
API endpoints package.

Contains FastAPI routers for all service endpoints:
- /v1/cloudwatch:push - CloudWatch Logs subscription payloads
- /metrics - Prometheus metrics
- /healthz, /readyz - Health checks
"""
from .cloudwatch import router as cloudwatch_router
from .healthz import router as healthz_router
from .metrics import router as metrics_router

__all__ = ["cloudwatch_router", "healthz_router", "metrics_router"]
