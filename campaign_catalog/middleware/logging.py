"""
Request logging; binds request context so gateway and store events carry it
"""
import time
from typing import Dict

from fastapi import Request
from opentelemetry import trace
import structlog

logger = structlog.get_logger(__name__)


def current_trace_id() -> str:
    """Hex trace id of the active span, or an empty string"""
    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        return format(span.get_span_context().trace_id, '032x')
    return ""


def request_context(request: Request) -> Dict[str, str]:
    """Fields bound to every log event emitted while serving ``request``"""
    return {
        "trace_id": current_trace_id(),
        "method": request.method,
        "path": request.url.path,
    }


async def logging_middleware(request: Request, call_next):
    """Bind request context, then log the outcome once the response is ready"""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**request_context(request))
    start = time.perf_counter()

    logger.debug(
        "Request received",
        query=str(request.query_params) if request.query_params else "",
        client_ip=request.client.host if request.client else None,
    )

    try:
        response = await call_next(request)
    except Exception:
        logger.error("Request crashed", latency_seconds=round(time.perf_counter() - start, 3))
        raise

    route = request.scope.get("route")
    log = logger.warning if response.status_code >= 500 else logger.info
    log(
        "Request completed",
        route=getattr(route, "path", None),
        status_code=response.status_code,
        latency_seconds=round(time.perf_counter() - start, 3),
    )
    return response
