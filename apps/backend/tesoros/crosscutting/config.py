"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Select the Profile Store base URL for the current environment

Collaborators:
  - api/main.py: reads settings for CORS and startup validation
  - container.py: chooses identity backend and token verifier
  - client/bootstrap.py: reads base URL, timeout, retry and storage settings

Constraints:
  - No business logic — pure configuration
  - The API base URL is the only parameter a deployed client needs

Notes:
  - Singleton via lru_cache
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_SECRETS = {"dev-secret", "changeme", "change-me", "password", "secret"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: development | local | test | production
        api_base_url_development: Profile Store base URL in development
        api_base_url_production: Profile Store base URL in production
        api_timeout_seconds: HTTP timeout for Profile Store / provider calls
        identity_backend: local | firebase
        identity_token_secret: HS256 secret for locally issued identity tokens
        identity_token_issuer: issuer claim of locally issued tokens
        identity_token_ttl_seconds: lifetime of locally issued tokens
        firebase_api_key: Identity Toolkit web API key
        firebase_project_id: Firebase project (audience of ID tokens)
        login_max_failed_attempts: failed logins before RATE_LIMITED
        login_lockout_seconds: lockout window after too many failures
        client_storage_dir: directory for client-side persisted state
        allowed_origins: Comma-separated CORS origins
    """

    # Environment
    app_env: str = "development"

    # Profile Store endpoint
    api_base_url_development: str = "http://localhost:3000/api"
    api_base_url_production: str = ""
    api_timeout_seconds: float = 10.0

    # Identity provider
    identity_backend: str = "local"
    identity_token_secret: str = "dev-secret"
    identity_token_issuer: str = "tesoros-local-identity"
    identity_token_ttl_seconds: int = 300
    firebase_api_key: str = ""
    firebase_project_id: str = ""

    # Local provider hardening
    login_max_failed_attempts: int = 5
    login_lockout_seconds: int = 300

    # Client-side persisted state (pending registration)
    client_storage_dir: str = ".tesoros"

    # CORS configuration
    allowed_origins: str = "http://localhost:5173"
    cors_allow_credentials: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Retry/Resilience
    retry_max_attempts: int = 3
    retry_base_delay_seconds: float = 0.5
    retry_max_delay_seconds: float = 5.0

    # Dev Tools (Backend Safe)
    dev_seed_admin: bool = False
    dev_seed_admin_email: str = "admin@tesoros.local"
    dev_seed_admin_password: str = "admin"
    dev_seed_admin_name: str = "Administrador"
    dev_seed_admin_force_reset: bool = False

    @field_validator("identity_backend")
    @classmethod
    def identity_backend_valid(cls, v: str) -> str:
        backend = (v or "local").strip().lower()
        if backend not in {"local", "firebase"}:
            raise ValueError("identity_backend must be local or firebase")
        return backend

    @field_validator("api_timeout_seconds")
    @classmethod
    def timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("api_timeout_seconds must be greater than 0")
        return v

    @field_validator("identity_token_ttl_seconds", "login_max_failed_attempts")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("value must be greater than 0")
        return v

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    def resolved_api_base_url(self) -> str:
        """Base URL of the Profile Store for the current environment."""
        if self.is_production():
            return self.api_base_url_production.rstrip("/")
        return self.api_base_url_development.rstrip("/")

    @model_validator(mode="after")
    def validate_identity_requirements(self):
        if self.identity_backend != "firebase":
            return self
        if not self.firebase_api_key.strip() or not self.firebase_project_id.strip():
            raise ValueError(
                "FIREBASE_API_KEY and FIREBASE_PROJECT_ID are required "
                "when IDENTITY_BACKEND=firebase"
            )
        return self

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        if not self.api_base_url_production.strip():
            raise ValueError("API_BASE_URL_PRODUCTION must be set in production")

        if self.identity_backend == "local":
            secret = (self.identity_token_secret or "").strip()
            if not secret or secret in _INSECURE_SECRETS:
                raise ValueError(
                    "IDENTITY_TOKEN_SECRET must be set to a strong, "
                    "non-default value in production"
                )
            if len(secret) < 32:
                raise ValueError(
                    "IDENTITY_TOKEN_SECRET must be at least 32 characters in production"
                )
        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are missing or invalid
    """
    return Settings()
