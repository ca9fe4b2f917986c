# apps/backend/tesoros/crosscutting/middleware.py
"""
===============================================================================
MÓDULO: Middleware HTTP de contexto
===============================================================================

RequestContextMiddleware:
   - Acepta X-Request-Id del cliente (si es seguro) o genera uno nuevo.
   - Deja request_id / method / path en ContextVars: cada log del request
     (incluido el subject_id que setea la autenticación) sale correlacionado.
   - Un log de cierre por request con status y latencia.

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Responsabilidades:
  - Observabilidad (request_id + logs)
  - clear_context() siempre, para que nada se filtre al request siguiente

Colaboradores:
  - tesoros/context.py
  - crosscutting/logger.py
  - crosscutting/error_responses.py (lee request.state.request_id)
===============================================================================
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..context import clear_context, set_request_context
from .logger import logger

REQUEST_ID_HEADER = "X-Request-Id"

# Solo ids imprimibles y acotados: el valor termina en logs y headers.
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_QUIET_PATHS = frozenset({"/healthz"})


def resolve_request_id(incoming: str | None) -> str:
    candidate = (incoming or "").strip()
    if _SAFE_REQUEST_ID.match(candidate):
        return candidate
    return uuid.uuid4().hex


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id
        set_request_context(
            request_id=request_id, method=request.method, path=request.url.path
        )

        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            if request.url.path not in _QUIET_PATHS:
                logger.log(
                    logging.WARNING if status_code >= 500 else logging.INFO,
                    "Request completado",
                    extra={
                        "status_code": status_code,
                        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
                    },
                )
            clear_context()
