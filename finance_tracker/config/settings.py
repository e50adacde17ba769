"""
Configuration Management for Finance Tracker

Settings are read from environment variables (and .env) through pydantic-settings.

Each hosted service has its own settings class,
so a missing key only disables that one service.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CloudinarySettings(BaseSettings):
    """Cloudinary receipt image hosting configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDINARY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    cloud_name: str = Field(
        ...,
        min_length=1,
        description="Cloudinary cloud name"
    )
    api_key: str = Field(
        ...,
        min_length=1,
        description="Cloudinary API key"
    )
    api_secret: str = Field(
        ...,
        min_length=1,
        description="Cloudinary API secret"
    )
    folder: str = Field(
        default="finance_tracker/receipts",
        description="Folder receipts are uploaded into"
    )


class IdentitySettings(BaseSettings):
    """Hosted identity service (Firebase Auth / Identity Toolkit) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FIREBASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        min_length=1,
        description="Web API key of the Firebase project"
    )
    identity_base_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        description="Identity Toolkit REST endpoint"
    )
    token_base_url: str = Field(
        default="https://securetoken.googleapis.com/v1",
        description="Secure Token REST endpoint (token refresh)"
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for identity requests"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        min_length=1,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        min_length=1,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # One worksheet per collection
    accounts_sheet_name: str = Field(
        default="Accounts",
        description="Name of the sheet for accounts"
    )
    transactions_sheet_name: str = Field(
        default="Transactions",
        description="Name of the sheet for transactions"
    )
    investments_sheet_name: str = Field(
        default="Investments",
        description="Name of the sheet for investments"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Missing key files only warn; the file may be mounted after startup."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Sheets storage will fail until it is present."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini LLM configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        min_length=1,
        description="Gemini API key"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model used for receipts and insights"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Maximum tokens in response"
    )
    temperature: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Model temperature (lower = more deterministic)"
    )


class AppSettings(BaseSettings):
    """
    General app behaviour: environment, logging, uploads and review limits.

    Every field has a default, so this always loads.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Log level for the structured logger"
    )

    # Display
    currency_symbol: str = Field(
        default="₹",
        description="Currency symbol shown in the UI and AI prompts"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum receipt upload size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )
    min_image_quality_score: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Receipt images scoring below this are rejected"
    )

    # Receipt review thresholds
    max_receipt_amount: float = Field(
        default=1000000.0,
        description="Amounts above this are flagged for review"
    )
    future_date_tolerance_days: int = Field(
        default=7,
        description="How many days in the future a receipt date can be"
    )

    # Reports
    trend_months: int = Field(
        default=6,
        ge=1,
        le=24,
        description="Number of months shown in trend charts"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        """Get max upload size in bytes."""
        return self.max_upload_size_mb * 1024 * 1024


class Settings(BaseSettings):
    """
    Root settings container.

    Each property builds its section on access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sub-settings are loaded lazily to allow partial configuration

    @property
    def cloudinary(self) -> CloudinarySettings:
        return CloudinarySettings()

    @property
    def identity(self) -> IdentitySettings:
        return IdentitySettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Return the process-wide Settings instance.

    Tests reset it with get_settings.cache_clear().
    """
    return Settings()


def validate_all_settings() -> dict[str, object]:
    """
    Try to load every settings section.

    Returns a dict of {setting_name: is_valid} plus
    {setting_name}_error entries for the failures.
    """
    results: dict[str, object] = {}
    settings = get_settings()

    checks = {
        "cloudinary": lambda: settings.cloudinary,
        "identity": lambda: settings.identity,
        "google_sheets": lambda: settings.google_sheets,
        "gemini": lambda: settings.gemini,
        "app": lambda: settings.app,
    }

    for name, load in checks.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
