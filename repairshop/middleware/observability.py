from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from repairshop.core.request_context import clear_request_context, set_request_context

logger = logging.getLogger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        set_request_context(request_id=request_id)

        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            # Runs after the session is closed: only plain values may be read here.
            workspace_id = _extract_workspace_id(request)
            user_id = _extract_user_id(request)
            set_request_context(workspace_id=workspace_id, user_id=user_id)

            logger.info(
                "request completed",
                extra={
                    "request_id": request_id,
                    "workspace_id": workspace_id,
                    "user_id": user_id,
                    "endpoint": request.url.path,
                    "method": request.method,
                    "status_code": response.status_code if response is not None else 500,
                    "duration_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            if response is not None:
                response.headers["X-Request-ID"] = request_id
            clear_request_context()


def _extract_workspace_id(request: Request) -> str | None:
    context = getattr(request.state, "workspace_context", None)
    workspace_id = context.workspace_id if context is not None else request.path_params.get("workspace_id")
    return str(workspace_id) if workspace_id is not None else None


def _extract_user_id(request: Request) -> str | None:
    auth = getattr(request.state, "auth", None)
    if auth is None:
        return None
    return str(auth.user_id)
