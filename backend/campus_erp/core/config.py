"""Application configuration loaded from environment variables.

Settings for the database, CORS, session cookies, path-token encryption,
OTP delivery and rate limiting. Uses pydantic-settings for validation and
.env file support.
"""

from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "campus_erp_dev_password"  # nosec B105

# Minimum length for AUTH_SECRET in production (256 bits = 32 bytes)
_MIN_AUTH_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "campus_erp"
    database_user: str = "campus_erp_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 3001

    # CORS (Security)
    # CRITICAL: Never set to ["*"]; the session cookie requires credentials
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Application
    environment: str = "development"
    log_level: str = "INFO"

    # Registration token (issued after OTP verification)
    auth_secret: SecretStr = SecretStr("")
    auth_issuer: str = "campus-erp"
    registration_token_ttl_minutes: int = 15

    # Server-side sessions
    session_cookie_name: str = "campus_erp_session"
    session_ttl_minutes: int = 30
    session_cookie_secure: bool = True
    session_cookie_samesite: Literal["lax", "strict", "none"] = "lax"
    session_cookie_domain: str = ""

    # Secure file retrieval
    uploads_dir: str = "uploads"
    file_token_key: SecretStr = SecretStr("")
    file_token_ttl_seconds: int | None = None

    # Email (Resend)
    email_from: str = "noreply@campus-erp.example.com"
    resend_api_key: SecretStr = SecretStr("")

    # OTP
    otp_ttl_minutes: int = 10

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_enabled: bool = True  # Disable for testing
    rate_limit_otp_request: str = "5/hour"
    rate_limit_otp_verify: str = "10/minute"
    rate_limit_login: str = "5/15minute"

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate production security requirements.

        Security: Prevents deployment with known insecure defaults.
        Checks:
        - SameSite=None requires Secure flag (browser requirement)
        - CORS must not use wildcard origin (incompatible with credentials)
        - Session and OTP lifetimes must be positive
        - Database password must not be the default in production
        - AUTH_SECRET must be set and >= 32 chars in production
        - FILE_TOKEN_KEY must be set in production
        """
        if self.session_cookie_samesite == "none" and not self.session_cookie_secure:
            msg = (
                "SESSION_COOKIE_SECURE must be true when SESSION_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)

        if "*" in self.allowed_origins:
            msg = (
                "ALLOWED_ORIGINS must not contain '*' (wildcard). "
                "This application uses credentials (cookies) which are "
                "incompatible with wildcard CORS origins."
            )
            raise ValueError(msg)

        for name in (
            "session_ttl_minutes",
            "otp_ttl_minutes",
            "registration_token_ttl_minutes",
        ):
            if getattr(self, name) <= 0:
                msg = f"{name.upper()} must be positive. Got: {getattr(self, name)}"
                raise ValueError(msg)

        if self.environment == "production":
            if self.database_password == _INSECURE_DEFAULT_PASSWORD:
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            secret_value = self.auth_secret.get_secret_value()
            if len(secret_value) < _MIN_AUTH_SECRET_LENGTH:
                msg = (
                    f"AUTH_SECRET must be at least {_MIN_AUTH_SECRET_LENGTH} "
                    "characters in production. "
                    'Generate with: python -c "import secrets; '
                    'print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)

            if not self.file_token_key.get_secret_value():
                msg = (
                    "FILE_TOKEN_KEY must be set in production. Generate with: "
                    'python -c "from cryptography.fernet import Fernet; '
                    'print(Fernet.generate_key().decode())"'
                )
                raise ValueError(msg)

        return self


settings = Settings()
