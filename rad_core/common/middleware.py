# rad_core/common/middleware.py
from __future__ import annotations

import logging
import time

from django.utils.deprecation import MiddlewareMixin

from rad_core.common.api.exceptions import ensure_request_id

logger = logging.getLogger("rad_core.request")

REQUEST_ID_HEADER = "X-Request-Id"


class RequestContextMiddleware(MiddlewareMixin):
    """
    Stamps every request with a request_id (honouring an inbound X-Request-Id)
    and writes one access-log line per response.
    """

    def process_request(self, request):
        inbound = request.headers.get(REQUEST_ID_HEADER)
        if inbound:
            request.request_id = inbound[:64]
        ensure_request_id(request)
        request._started_at = time.monotonic()
        return None

    def process_response(self, request, response):
        rid = ensure_request_id(request)
        response[REQUEST_ID_HEADER] = rid

        started = getattr(request, "_started_at", None)
        elapsed_ms = (time.monotonic() - started) * 1000 if started else 0.0
        logger.info(
            "%s %s %s %.1fms request_id=%s",
            request.method,
            request.path,
            response.status_code,
            elapsed_ms,
            rid,
        )
        return response
