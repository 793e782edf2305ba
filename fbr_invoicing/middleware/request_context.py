# Request tracing middleware: request id / tenant id for structured logs

import time
import uuid
import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from fbr_invoicing.utils.observability import set_request_context, clear_request_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
TENANT_ID_HEADER = "X-Tenant-ID"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every log record of a request with its request id (incoming
    ``X-Request-ID`` or a fresh uuid4) and the caller's ``X-Tenant-ID``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        req_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        set_request_context(req_id, request.headers.get(TENANT_ID_HEADER, ""))

        start_time = time.time()
        try:
            response = await call_next(request)
            response_time_ms = (time.time() - start_time) * 1000
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code}",
                extra={"status_code": response.status_code, "response_time_ms": round(response_time_ms, 1)},
            )
            response.headers[REQUEST_ID_HEADER] = req_id
            return response
        finally:
            clear_request_context()
