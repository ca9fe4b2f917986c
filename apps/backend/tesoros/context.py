"""
===============================================================================
TARJETA CRC — tesoros/context.py (Contexto por request / sesión)
===============================================================================

Responsabilidades:
  - Mantener contexto “request-scoped” usando ContextVars (async-safe).
  - Correlacionar logs del servicio y del cliente sin pasar parámetros por todo el stack.
  - Proveer helpers mínimos: set_*(), get_context_dict(), clear_context().

Colaboradores:
  - tesoros.crosscutting.middleware: setea request_id/method/path al inicio del request.
  - tesoros.api.dependencies: setea subject_id al autenticar el bearer token.
  - tesoros.client.session: setea subject_id al adoptar una identidad.
  - tesoros.crosscutting.logger: enriquece logs leyendo get_context_dict().

Restricciones:
  - Solo tipos primitivos (str) para serialización segura.
  - Defaults vacíos ("") para evitar None y simplificar JSON.
===============================================================================
"""

from __future__ import annotations

from contextvars import ContextVar
from typing import Final

# Identificador de request (idealmente UUID o ID estable).
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Metadatos HTTP básicos para logs (método y path).
http_method_var: ContextVar[str] = ContextVar("http_method", default="")
http_path_var: ContextVar[str] = ContextVar("http_path", default="")

# Sujeto del proveedor de identidad atendido (servicio) o activo (cliente).
subject_id_var: ContextVar[str] = ContextVar("subject_id", default="")

_CTX_REQUEST_ID: Final[str] = "request_id"
_CTX_METHOD: Final[str] = "method"
_CTX_PATH: Final[str] = "path"
_CTX_SUBJECT: Final[str] = "subject_id"


def set_request_context(
    *, request_id: str = "", method: str = "", path: str = ""
) -> None:
    """
    Setea el contexto mínimo del request.

    Regla:
      - Strings vacíos significan “no disponible”.
    """
    request_id_var.set(request_id or "")
    http_method_var.set(method or "")
    http_path_var.set(path or "")


def set_subject_context(subject_id: str | None) -> None:
    subject_id_var.set(subject_id or "")


def get_context_dict() -> dict[str, str]:
    """Devuelve el contexto actual como dict, omitiendo claves vacías."""
    ctx: dict[str, str] = {}

    if val := request_id_var.get():
        ctx[_CTX_REQUEST_ID] = val
    if val := http_method_var.get():
        ctx[_CTX_METHOD] = val
    if val := http_path_var.get():
        ctx[_CTX_PATH] = val
    if val := subject_id_var.get():
        ctx[_CTX_SUBJECT] = val

    return ctx


def clear_context() -> None:
    """
    Limpia el contexto al final del request.

    Importante:
      - Evita “filtración de contexto” entre requests en workers async.
    """
    request_id_var.set("")
    http_method_var.set("")
    http_path_var.set("")
    subject_id_var.set("")
