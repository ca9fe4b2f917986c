"""
===============================================================================
TARJETA CRC — api/exception_handlers.py (Manejo Centralizado de Excepciones)
===============================================================================

Responsabilidades:
  - Traducir errores tipados de casos de uso (ProfileStoreError) a HTTP.
  - Registrar los handlers problem+json en la app.
  - Loguear errores no controlados con request_id + error_id sin filtrar
    detalles internos en producción.

Colaboradores:
  - crosscutting.error_responses: AppHTTPException, factories, handlers
  - crosscutting.exceptions.TesorosError
  - application.usecases.profile_results.ProfileErrorCode
===============================================================================
"""

from __future__ import annotations

from typing import Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..application.usecases.profile_results import ProfileErrorCode, ProfileStoreError
from ..crosscutting.config import get_settings
from ..crosscutting.error_responses import (
    AppHTTPException,
    app_exception_handler,
    conflict,
    forbidden,
    internal_error,
    not_found,
    request_validation_handler,
    validation_error,
)
from ..crosscutting.exceptions import TesorosError
from ..crosscutting.logger import logger

_PROFILE_ERRORS: dict[ProfileErrorCode, Callable[[str], AppHTTPException]] = {
    ProfileErrorCode.VALIDATION_ERROR: validation_error,
    ProfileErrorCode.CONFLICT: conflict,
    ProfileErrorCode.NOT_FOUND: not_found,
    ProfileErrorCode.FORBIDDEN: forbidden,
}


def raise_for_profile_error(error: ProfileStoreError) -> None:
    """Lanza el AppHTTPException que corresponde al error del caso de uso."""
    factory = _PROFILE_ERRORS.get(error.code, validation_error)
    raise factory(error.message)


async def tesoros_error_handler(request: Request, exc: TesorosError) -> JSONResponse:
    logger.error(
        "Error de servicio",
        extra={
            "code": exc.error_code,
            "error_id": exc.error_id,
            "detail": exc.message,
        },
    )
    return await app_exception_handler(
        request, internal_error(exc.user_message, error_id=exc.error_id)
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Excepción no controlada",
        exc_info=True,
        extra={"error_type": type(exc).__name__},
    )
    detail = "Error interno." if get_settings().is_production() else str(exc)
    return await app_exception_handler(request, internal_error(detail))


def register_exception_handlers(app: FastAPI) -> None:
    """Exception genérica va al final: es el fallback."""
    app.add_exception_handler(TesorosError, tesoros_error_handler)
    app.add_exception_handler(AppHTTPException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


__all__ = ["raise_for_profile_error", "register_exception_handlers"]
