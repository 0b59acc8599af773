import asyncio
import logging

from fastapi import status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Writes are never timed out: a 504 must mean nothing was committed
UNTIMED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 when a read takes longer than `timeout` seconds."""

    def __init__(self, app, timeout: float):
        super().__init__(app)
        self.timeout = timeout

    def applies_to(self, request) -> bool:
        return bool(self.timeout) and self.timeout > 0 and request.method not in UNTIMED_METHODS

    async def dispatch(self, request, call_next):
        if not self.applies_to(request):
            return await call_next(request)
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning("%s %s timed out after %ss", request.method, request.url.path, self.timeout)
            return JSONResponse(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                content={"success": False, "message": "Request timed out"},
            )
