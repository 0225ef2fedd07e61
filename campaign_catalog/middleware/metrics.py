"""
Prometheus metrics for the catalog API, the backend gateway and the store
"""
import time
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
import structlog

logger = structlog.get_logger(__name__)

# HTTP metrics
http_requests_total = Counter(
    'catalog_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'catalog_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# Backend gateway metrics
gateway_requests_total = Counter(
    'gateway_requests_total',
    'Total number of calls to the campaign backend',
    ['operation', 'status']
)

gateway_request_duration_seconds = Histogram(
    'gateway_request_duration_seconds',
    'Campaign backend call duration in seconds',
    ['operation']
)

# Store metrics
store_operations_total = Counter(
    'store_operations_total',
    'Total number of campaign store operations',
    ['operation', 'outcome']
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect Prometheus metrics for HTTP requests"""

    async def dispatch(self, request: Request, call_next):
        # Skip metrics endpoint itself
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.time()

        response = await call_next(request)

        # Use the route template so ids do not explode label cardinality
        endpoint = request.url.path
        route = request.scope.get('route')
        if route is not None and hasattr(route, 'path'):
            endpoint = route.path

        duration = time.time() - start_time

        http_requests_total.labels(
            method=request.method,
            endpoint=endpoint,
            status=str(response.status_code)
        ).inc()

        http_request_duration_seconds.labels(
            method=request.method,
            endpoint=endpoint
        ).observe(duration)

        return response


async def metrics_endpoint(request: Request):
    """Endpoint to expose Prometheus metrics"""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
