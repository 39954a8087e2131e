import logging
import time
import uuid
from typing import Any, Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("task_portal.access")


def route_template(request: Request) -> Optional[str]:
    """`/task/{task_id}` rather than `/task/7`; None when nothing matched."""
    route = request.scope.get("route")
    return getattr(route, "path", None)


class AccessLogMiddleware(BaseHTTPMiddleware):
    """
    One `request.end` line per request, keyed by the matched route template.
    Requests refused because the store is poisoned are logged at ERROR with
    `store_poisoned=True`; the exception handler flags them on request.state.
    """
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.perf_counter()
        request.state.request_id = request_id
        request.state.store_poisoned = False

        def fields(**more: Any) -> Dict[str, Any]:
            return {
                "category": "http",
                "request_id": request_id,
                "method": request.method,
                "path": request.url.path,
                "route": route_template(request),
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                **more,
            }

        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception("request.error", extra=fields(event="request.error"))
            raise

        response.headers["X-Request-ID"] = request_id
        poisoned = bool(getattr(request.state, "store_poisoned", False))
        logger.log(
            logging.ERROR if poisoned else logging.INFO,
            "request.end",
            extra=fields(event="request.end", status_code=response.status_code, store_poisoned=poisoned),
        )
        return response
