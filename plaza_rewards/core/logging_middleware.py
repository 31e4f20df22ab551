import logging
import time
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger("plaza_rewards")


class LoggingMiddleware(BaseHTTPMiddleware):
    """요청/응답 로깅 (테넌트 헤더 포함)"""

    def __init__(self, app, tenant_header: str = "X-Tenant-Id"):
        super().__init__(app)
        self.tenant_header = tenant_header

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start = time.time()
        method = request.method
        path = request.url.path
        tenant = request.headers.get(self.tenant_header, "-")

        logger.info(f"[Request] {method} {path} tenant={tenant}")
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[Unhandled Error] {method} {path} tenant={tenant}")
            raise

        duration_ms = (time.time() - start) * 1000
        line = f"[Response] {method} {path} tenant={tenant} -> {response.status_code} in {duration_ms:.1f}ms"
        if response.status_code >= 500:
            logger.error(line)
        elif response.status_code >= 400:
            logger.warning(line)
        else:
            logger.info(line)
        return response
