# apps/backend/tesoros/crosscutting/error_responses.py
"""
===============================================================================
MÓDULO: Respuestas de error estándar (RFC 7807 / Problem Details)
===============================================================================

Objetivo
--------
Todo error HTTP del Profile Store sale como application/problem+json con:
- `code`: categoría estable (el cliente clasifica por status + code)
- `detail`: mensaje en español apto para mostrar
- `request_id`: correlación con los logs del servicio

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  ErrorCode + ProblemDetail + AppHTTPException

Responsabilidades:
  - Fijar status y título por código (una sola tabla)
  - Proveer factories para los errores del dominio de perfiles
  - Proveer handlers (FastAPI) que serializan problem+json

Colaboradores:
  - crosscutting/middleware.py (request_id en request.state)
  - api/exception_handlers.py (registro de handlers)
  - client/profile_store.py (lee `detail` al mapear status -> ProfileError)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

PROBLEM_JSON_MEDIA_TYPE = "application/problem+json"
PROBLEM_TYPE_BASE = "https://tesoroschoco.co/problems/"


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# code -> (status, título)
_PROBLEMS: dict[ErrorCode, tuple[int, str]] = {
    ErrorCode.VALIDATION_ERROR: (422, "Datos inválidos"),
    ErrorCode.UNAUTHORIZED: (401, "No autenticado"),
    ErrorCode.FORBIDDEN: (403, "Acceso denegado"),
    ErrorCode.NOT_FOUND: (404, "No encontrado"),
    ErrorCode.CONFLICT: (409, "Transición inválida"),
    ErrorCode.INTERNAL_ERROR: (500, "Error interno"),
}


class ProblemDetail(BaseModel):
    """Payload RFC 7807 + extensiones `code`, `request_id` y `errors`."""

    type: str
    title: str
    status: int
    detail: str
    code: ErrorCode
    instance: str | None = None
    request_id: str | None = None
    errors: list[dict[str, Any]] | None = None


def _openapi_problem(status: int) -> dict[str, Any]:
    return {
        "model": ProblemDetail,
        "description": f"Problem Details ({status})",
        "content": {
            PROBLEM_JSON_MEDIA_TYPE: {
                "schema": {"$ref": "#/components/schemas/ProblemDetail"}
            }
        },
    }


OPENAPI_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: _openapi_problem(status) for status in (401, 403, 404, 409, 422)
}


class AppHTTPException(HTTPException):
    """HTTPException con un ErrorCode estable; el status sale de la tabla."""

    def __init__(
        self,
        code: ErrorCode,
        detail: str,
        *,
        errors: list[dict[str, Any]] | None = None,
        headers: dict[str, str] | None = None,
    ):
        status_code, _ = _PROBLEMS[code]
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.code = code
        self.errors = errors


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def validation_error(
    detail: str, errors: list[dict[str, Any]] | None = None
) -> AppHTTPException:
    return AppHTTPException(ErrorCode.VALIDATION_ERROR, detail, errors=errors)


def unauthorized(detail: str = "Autenticación requerida") -> AppHTTPException:
    return AppHTTPException(
        ErrorCode.UNAUTHORIZED, detail, headers={"WWW-Authenticate": "Bearer"}
    )


def forbidden(detail: str = "Acceso denegado") -> AppHTTPException:
    return AppHTTPException(ErrorCode.FORBIDDEN, detail)


def not_found(detail: str) -> AppHTTPException:
    return AppHTTPException(ErrorCode.NOT_FOUND, detail)


def conflict(detail: str) -> AppHTTPException:
    return AppHTTPException(ErrorCode.CONFLICT, detail)


def internal_error(detail: str, *, error_id: str | None = None) -> AppHTTPException:
    errors = [{"error_id": error_id}] if error_id else None
    return AppHTTPException(ErrorCode.INTERNAL_ERROR, detail, errors=errors)


# ---------------------------------------------------------------------------
# Handlers FastAPI
# ---------------------------------------------------------------------------
async def app_exception_handler(
    request: Request, exc: AppHTTPException
) -> JSONResponse:
    _, title = _PROBLEMS[exc.code]
    problem = ProblemDetail(
        type=PROBLEM_TYPE_BASE + exc.code.value.lower().replace("_", "-"),
        title=title,
        status=exc.status_code,
        detail=str(exc.detail),
        code=exc.code,
        instance=request.url.path,
        request_id=getattr(request.state, "request_id", None),
        errors=exc.errors,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(mode="json", exclude_none=True),
        headers=exc.headers,
        media_type=PROBLEM_JSON_MEDIA_TYPE,
    )


async def request_validation_handler(request: Request, exc) -> JSONResponse:
    """RequestValidationError de FastAPI -> 422 con errores por campo."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
            "msg": err.get("msg", ""),
        }
        for err in exc.errors()
    ]
    return await app_exception_handler(
        request, validation_error("Datos de entrada inválidos", errors)
    )
