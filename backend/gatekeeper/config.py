"""
Gatekeeper — Application Configuration
========================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
       Fails fast if the Basic auth credentials are missing.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates values, and provides a singleton `settings` object.
Who:   Imported by the application factory and the interception adapter.
When:  Loaded once at module import time; credentials are checked before
       the server accepts requests.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from gatekeeper.exceptions import ConfigurationError
from gatekeeper.middleware.rule import FailurePolicy


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    The credentials default to empty strings so the module can be imported
    without them (tooling, tests); `validate_credentials()` rejects that state
    at startup.
    """

    # ── Basic Authentication ──────────────────────────────────────────────
    # Shared secret pair every protected request must present.
    basic_auth_username: str = Field(default="", description="Expected Basic auth username")
    basic_auth_password: str = Field(default="", description="Expected Basic auth password")

    # Shown by browsers in the login prompt
    basic_auth_realm: str = Field(default="Authorization Required", min_length=1)

    # ── Interception ──────────────────────────────────────────────────────
    # Path prefixes that bypass the pipeline entirely.
    # Format: Comma-separated prefixes (parsed by the property below)
    excluded_paths: str = Field(default="/api,/static,/favicon.ico,/health")

    @property
    def excluded_paths_list(self) -> List[str]:
        """Splits comma-separated excluded prefixes into a list."""
        return [path.strip() for path in self.excluded_paths.split(",") if path.strip()]

    # What the chain does with an unexpected exception inside a rule
    rule_failure_policy: FailurePolicy = Field(default=FailurePolicy.PROPAGATE)

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def validate_credentials(self) -> None:
        """
        What:  Validates that both Basic auth credentials are configured.
        When:  Called by the application factory and the lifespan hook.
        Why:   A pipeline without credentials would reject every request,
               so the server refuses to start instead.
        """
        missing = []
        if not self.basic_auth_username:
            missing.append("BASIC_AUTH_USERNAME")
        if not self.basic_auth_password:
            missing.append("BASIC_AUTH_PASSWORD")
        if missing:
            raise ConfigurationError(
                "Configuration validation failed:\n"
                + "\n".join(f"  - {name} is not set" for name in missing),
                missing=missing,
            )


# Singleton instance, immutable after startup
settings = Settings()
