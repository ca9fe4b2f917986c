# apps/backend/tesoros/crosscutting/exceptions.py
"""
===============================================================================
MÓDULO: Excepciones tipadas (identidad y perfiles)
===============================================================================

Objetivo
--------
Tener excepciones coherentes, con:
- error_code estable
- error_id para correlación con logs
- user_message fija y en español (nunca el código crudo del proveedor)

-------------------------------------------------------------------------------
CRC (Component Card)
-------------------------------------------------------------------------------
Componente:
  TesorosError + familias AuthError / ProfileError

Responsabilidades:
  - Estandarizar errores del proveedor de identidad (AuthError)
  - Estandarizar errores del Profile Store vistos por el cliente (ProfileError)
  - Generar error_id para rastreo

Colaboradores:
  - identity/* (lanzan AuthError)
  - client/profile_store.py (lanza ProfileError)
  - client/session.py (publica user_message en el estado de sesión)
  - api/exception_handlers.py (mapea TesorosError no controlados a HTTP)
===============================================================================
"""

from __future__ import annotations

from enum import Enum
from uuid import uuid4


class TesorosError(Exception):
    """
    ----------------------------------------------------------------------------
    CRC (Class Card)
    ----------------------------------------------------------------------------
    Clase:
      TesorosError

    Responsabilidades:
      - Base para errores internos del sistema
      - Proveer error_code + error_id + message + user_message

    Colaboradores:
      - api/exception_handlers.py
      - client/session.py
    ----------------------------------------------------------------------------
    """

    error_code: str = "TESOROS_ERROR"
    default_user_message: str = "Ocurrió un error inesperado. Intenta de nuevo."

    def __init__(
        self,
        message: str,
        error_id: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.error_id = error_id or str(uuid4())
        self.original_error = original_error
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return self.default_user_message


# =============================================================================
# Errores del proveedor de identidad
# =============================================================================


class AuthErrorCode(str, Enum):
    """Categorías estables de fallas de autenticación."""

    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    RATE_LIMITED = "RATE_LIMITED"
    ROLE_REQUIRED = "ROLE_REQUIRED"
    EMAIL_IN_USE = "EMAIL_IN_USE"
    WEAK_PASSWORD = "WEAK_PASSWORD"
    INVALID_EMAIL = "INVALID_EMAIL"
    FEDERATED_CANCELLED = "FEDERATED_CANCELLED"
    ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL = "ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL"
    ACCOUNT_DISABLED = "ACCOUNT_DISABLED"


AUTH_ERROR_MESSAGES: dict[AuthErrorCode, str] = {
    AuthErrorCode.INVALID_CREDENTIALS: "Las credenciales son inválidas.",
    AuthErrorCode.EMAIL_NOT_VERIFIED: (
        "Debes verificar tu email antes de iniciar sesión. "
        "Te enviamos un nuevo enlace de verificación."
    ),
    AuthErrorCode.PROVIDER_UNAVAILABLE: "Error de red. Verifica tu conexión.",
    AuthErrorCode.RATE_LIMITED: "Demasiados intentos. Intenta de nuevo más tarde.",
    AuthErrorCode.ROLE_REQUIRED: "Debes seleccionar un rol para registrarte.",
    AuthErrorCode.EMAIL_IN_USE: "Este email ya está registrado.",
    AuthErrorCode.WEAK_PASSWORD: "La contraseña debe tener al menos 6 caracteres.",
    AuthErrorCode.INVALID_EMAIL: "El formato del email es inválido.",
    AuthErrorCode.FEDERATED_CANCELLED: "Ventana de autenticación cerrada.",
    AuthErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL: (
        "Ya existe una cuenta con este email pero con un método de inicio "
        "de sesión diferente."
    ),
    AuthErrorCode.ACCOUNT_DISABLED: "Esta cuenta fue deshabilitada.",
}


class AuthError(TesorosError):
    """Falla del proveedor de identidad, ya traducida a una categoría estable."""

    error_code: str = "AUTH_ERROR"
    code: AuthErrorCode = AuthErrorCode.PROVIDER_UNAVAILABLE

    def __init__(
        self,
        message: str = "",
        *,
        code: AuthErrorCode | None = None,
        provider_code: str | None = None,
        original_error: Exception | None = None,
    ):
        if code is not None:
            self.code = code
        self.provider_code = provider_code
        super().__init__(message or self.code.value, original_error=original_error)

    @property
    def user_message(self) -> str:
        return AUTH_ERROR_MESSAGES[self.code]


class InvalidCredentialsError(AuthError):
    code = AuthErrorCode.INVALID_CREDENTIALS


class EmailNotVerifiedError(AuthError):
    code = AuthErrorCode.EMAIL_NOT_VERIFIED


class ProviderUnavailableError(AuthError):
    code = AuthErrorCode.PROVIDER_UNAVAILABLE


class RateLimitedError(AuthError):
    code = AuthErrorCode.RATE_LIMITED


class RoleRequiredError(AuthError):
    code = AuthErrorCode.ROLE_REQUIRED


_AUTH_ERROR_CLASSES: dict[AuthErrorCode, type[AuthError]] = {
    AuthErrorCode.INVALID_CREDENTIALS: InvalidCredentialsError,
    AuthErrorCode.EMAIL_NOT_VERIFIED: EmailNotVerifiedError,
    AuthErrorCode.PROVIDER_UNAVAILABLE: ProviderUnavailableError,
    AuthErrorCode.RATE_LIMITED: RateLimitedError,
    AuthErrorCode.ROLE_REQUIRED: RoleRequiredError,
}


def auth_error_for(
    code: AuthErrorCode,
    message: str = "",
    *,
    provider_code: str | None = None,
    original_error: Exception | None = None,
) -> AuthError:
    """Construye la subclase más específica disponible para el código."""
    cls = _AUTH_ERROR_CLASSES.get(code, AuthError)
    return cls(
        message,
        code=code,
        provider_code=provider_code,
        original_error=original_error,
    )


# =============================================================================
# Errores del Profile Store (vistos desde el cliente)
# =============================================================================


class ProfileError(TesorosError):
    """Falla al leer o escribir el perfil en el Profile Store."""

    error_code: str = "PROFILE_ERROR"
    default_user_message = "No pudimos guardar tu perfil. Intenta de nuevo."
    transient: bool = False

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        original_error: Exception | None = None,
    ):
        self.status_code = status_code
        super().__init__(message, original_error=original_error)


class ProfileNetworkError(ProfileError):
    """Red caída, timeout o 5xx: reintentable."""

    error_code = "PROFILE_NETWORK_ERROR"
    default_user_message = "Error de red. Verifica tu conexión e intenta de nuevo."
    transient = True


class ProfileNotFoundError(ProfileError):
    error_code = "PROFILE_NOT_FOUND"
    default_user_message = "No encontramos tu perfil."


class ProfileValidationError(ProfileError):
    error_code = "PROFILE_VALIDATION_ERROR"
    default_user_message = "Revisa los datos del perfil e intenta de nuevo."


class ProfileConflictError(ProfileError):
    error_code = "PROFILE_CONFLICT"
    default_user_message = "La operación no es válida para el estado actual del usuario."


class ProfileForbiddenError(ProfileError):
    error_code = "PROFILE_FORBIDDEN"
    default_user_message = "No tienes permisos para realizar esta acción."


class NotAuthenticatedError(ProfileError):
    error_code = "NOT_AUTHENTICATED"
    default_user_message = "Debes iniciar sesión para continuar."


class ProfileResponseError(ProfileError):
    """El Profile Store respondió 2xx con un body que no se puede interpretar."""

    error_code = "PROFILE_BAD_RESPONSE"
    default_user_message = "No pudimos leer tu perfil. Intenta de nuevo."
