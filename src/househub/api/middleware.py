"""Correlation middleware for request tracing.

Propagates the request ID to logging and back to the client.
"""

from __future__ import annotations

import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from househub.observability.logging import request_id_var

REQUEST_ID_HEADER = "x-request-id"


def new_request_id() -> str:
    return str(uuid.uuid4())


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Extracts or generates a request ID for every HTTP request.

    The ID is stored on ``request.state``, set on the logging context
    variable for the duration of the request and echoed in the
    ``x-request-id`` response header.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or new_request_id()

        token = request_id_var.set(request_id)
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)
