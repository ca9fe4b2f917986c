# apps/backend/tesoros/crosscutting/logger.py
"""
===============================================================================
MÓDULO: Logger estructurado (JSON) con contexto de request / sesión
===============================================================================

Objetivo
--------
Una sola línea JSON por evento, correlacionable por request_id (servicio) o
subject_id (cliente), sin credenciales ni PII completa:
- passwords, ID tokens, refresh tokens y secretos => "***REDACTADO***"
- emails => solo la primera letra del usuario ("a***@example.com")

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  JSONFormatter + setup_logger()

Responsabilidades:
  - Formatear logs como JSON
  - Enriquecer con contexto (request_id, path, method, subject_id)
  - Redactar campos sensibles y limitar tamaños

Colaboradores:
  - tesoros/context.py (ContextVars)
  - crosscutting/config.py (nivel y formato)
===============================================================================
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any

# Atributos propios de LogRecord: todo lo demás llegó vía `extra=`.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}

REDACTED = "***REDACTADO***"

_SECRET_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "new_password",
        "secret",
        "token",
        "id_token",
        "idtoken",
        "refresh_token",
        "refreshtoken",
        "authorization",
        "api_key",
        "credential",
        "firebase_api_key",
        "identity_token_secret",
    }
)

_EMAIL_KEYS: frozenset[str] = frozenset({"email", "target_email"})


def mask_email(value: str) -> str:
    """'ana@example.com' -> 'a***@example.com' (el dominio queda visible)."""
    local, sep, domain = value.partition("@")
    if not sep or not local:
        return REDACTED
    return f"{local[0]}***@{domain}"


class _Redactor:
    """Sanitiza valores de `extra` antes de serializarlos."""

    def __init__(self, max_str: int = 2_000, max_depth: int = 4):
        self._max_str = max_str
        self._max_depth = max_depth

    def sanitize(self, value: Any, *, key: str | None = None, depth: int = 0) -> Any:
        lowered = (key or "").lower()
        if lowered in _SECRET_KEYS:
            return REDACTED
        if lowered in _EMAIL_KEYS and isinstance(value, str):
            return mask_email(value)
        if depth > self._max_depth:
            return "***TRUNCADO***"

        if isinstance(value, str):
            if len(value) > self._max_str:
                return value[: self._max_str] + "…(truncado)"
            return value
        if isinstance(value, dict):
            return {
                str(k): self.sanitize(v, key=str(k), depth=depth + 1)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.sanitize(v, key=key, depth=depth + 1) for v in value]
        if isinstance(value, (bool, int, float)) or value is None:
            return value
        # Enums, UUIDs, datetimes: su forma texto alcanza para logs.
        return str(value)


class JSONFormatter(logging.Formatter):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      JSONFormatter

    Responsabilidades:
      - LogRecord -> una línea JSON
      - Contexto de request / sesión primero, `extra` sanitizado después
      - Stacktrace cuando hay excepción

    Colaboradores:
      - tesoros/context.get_context_dict()
      - _Redactor
    ----------------------------------------------------------------------------
    """

    def __init__(self, service: str = "tesoros"):
        super().__init__()
        self._service = service
        self._redactor = _Redactor()

    def format(self, record: logging.LogRecord) -> str:
        from ..context import get_context_dict

        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self._service,
            "logger": record.name,
            "message": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
            "pid": os.getpid(),
            **get_context_dict(),
        }

        extras = {
            k: v for k, v in record.__dict__.items() if k not in _RESERVED_ATTRS
        }
        for key, value in extras.items():
            payload[key] = self._redactor.sanitize(value, key=key)

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(payload, ensure_ascii=False, default=str, separators=(",", ":"))


def setup_logger(name: str = "tesoros") -> logging.Logger:
    """
    Logger del paquete (servicio y cliente comparten configuración).

    Settings inválidos no impiden loguear: se cae a INFO + JSON y el error de
    configuración se reporta donde se lea Settings.
    """
    log = logging.getLogger(name)

    level, use_json = "INFO", True
    try:
        from .config import get_settings

        settings = get_settings()
        level = (settings.log_level or "INFO").upper()
        use_json = bool(settings.log_json)
    except ValueError:
        pass

    log.setLevel(getattr(logging, level, logging.INFO))

    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            JSONFormatter(name)
            if use_json
            else logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        log.addHandler(handler)

    return log


logger = setup_logger()
