"""tesoros.infrastructure.services.retry

Name: Retry de llamadas al Profile Store (tenacity, backoff + jitter)

Qué es
------
Política única de reintentos del cliente. Las lecturas y los upserts del
Profile Store son idempotentes (POST /auth/register devuelve el perfil
existente), así que reintentarlos es seguro. La moderación NO pasa por aquí:
un reintento tras una respuesta perdida chocaría con su propio efecto.

CRC (Component Card)
--------------------
Component: retry helper
Responsibilities:
  - Clasificar errores: transitorio (reintentar) vs permanente (fallar ya)
  - Construir el decorator tenacity con los valores de Settings
  - Loguear cada reintento
Collaborators:
  - tenacity (sync y coroutines)
  - crosscutting.config.get_settings (retry_max_attempts / delays)
  - client.profile_store.ProfileStoreClient (único consumidor)
Constraints:
  - Transitorio: 408, 429, 5xx, timeouts y errores de transporte
  - Permanente: 400, 401, 403, 404, 409, 422 (el status manda sobre el tipo)
"""

from __future__ import annotations

from typing import Callable, TypeVar

import httpx
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from ...crosscutting.config import get_settings
from ...crosscutting.logger import logger

T = TypeVar("T")

TRANSIENT_HTTP_CODES: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})
PERMANENT_HTTP_CODES: frozenset[int] = frozenset({400, 401, 403, 404, 409, 422})


def get_http_status_code(exception: BaseException) -> int | None:
    """Status de httpx.HTTPStatusError o de un ProfileError con status_code."""
    if isinstance(exception, httpx.HTTPStatusError):
        return exception.response.status_code
    status_code = getattr(exception, "status_code", None)
    return status_code if isinstance(status_code, int) else None


def is_transient_error(exception: BaseException) -> bool:
    # ProfileError declara su naturaleza con `transient`.
    flagged = getattr(exception, "transient", None)
    if isinstance(flagged, bool):
        return flagged

    status_code = get_http_status_code(exception)
    if status_code in PERMANENT_HTTP_CODES:
        return False
    if status_code in TRANSIENT_HTTP_CODES:
        return True

    return isinstance(exception, (httpx.TransportError, TimeoutError, ConnectionError))


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome is not None else None
    logger.warning(
        "Reintentando llamada al Profile Store",
        extra={
            "operation": getattr(state.fn, "__name__", "desconocida"),
            "attempt": state.attempt_number,
            "wait_seconds": round(state.next_action.sleep, 2) if state.next_action else 0,
            "error_type": type(exc).__name__ if exc is not None else None,
        },
    )


def create_retry_decorator(
    max_attempts: int | None = None,
    base_delay: float | None = None,
    max_delay: float | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator tenacity; los argumentos explícitos pisan a Settings."""
    settings = get_settings()
    attempts = settings.retry_max_attempts if max_attempts is None else max_attempts
    initial = settings.retry_base_delay_seconds if base_delay is None else float(base_delay)
    ceiling = settings.retry_max_delay_seconds if max_delay is None else float(max_delay)

    if attempts <= 0:
        raise ValueError("max_attempts must be > 0")
    if initial < 0 or ceiling < 0:
        raise ValueError("retry delays must be >= 0")

    return retry(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential_jitter(initial=initial, max=ceiling, jitter=initial),
        retry=retry_if_exception(is_transient_error),
        before_sleep=_log_retry,
        reraise=True,
    )
