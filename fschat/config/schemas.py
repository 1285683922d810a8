"""
Configuration Schemas for fschat.

Security:
    The API key uses SecretStr to prevent accidental logging.
    Access the value with `.get_secret_value()`.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr


class AppSettings(BaseModel):
    """
    Application settings model.

    Used for type-safe settings access.
    """

    # Service identity
    service_name: str = "fschat"
    environment: str = "development"
    debug: bool = False

    # HTTP
    host: str = "0.0.0.0"
    port: int = Field(8080, ge=1, le=65535)

    # Gemini
    gemini_api_key: SecretStr = Field(default=SecretStr(""), description="Google Gemini API key")
    gemini_model: str = Field("gemini-2.5-pro", description="Model used for generation")

    # Agent loop
    channel_capacity: int = Field(256, ge=1, description="Output channel slots per request")
    max_rounds: int | None = Field(None, ge=1, description="Round cap per request (None = unbounded)")

    # Tools
    read_max_bytes: int | None = Field(None, ge=0, description="read_fs size cap (None = unlimited)")
