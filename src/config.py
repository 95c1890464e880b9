"""
Reconciler settings, loaded once and passed into the pipeline.

Uses pydantic-settings so environment variables and the Streamlit
[reconciler] secrets table go through the same typed validation.
"""

from typing import Optional

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils import (
    AMBIGUITY_POLICIES,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_WORKERS,
    DEFAULT_REQUEST_TIMEOUT,
)


class ConfigurationError(Exception):
    """A required setting is missing or invalid."""
    pass


class ReconcilerConfig(BaseSettings):
    """Reconciler settings."""

    model_config = SettingsConfigDict(
        frozen=True,
        extra="forbid",
        env_ignore_empty=True,
    )

    tmdb_api_key: str = Field(default="", validation_alias=AliasChoices("tmdb_api_key", "TMDB_API_KEY"))
    language: Optional[str] = Field(default=None, validation_alias=AliasChoices("language", "TMDB_LANGUAGE"))
    # GOOGLE_DOC_ID is accepted for older setups
    sheet_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("sheet_id", "GOOGLE_SHEET_ID", "GOOGLE_DOC_ID")
    )
    worksheet: Optional[str] = Field(default=None, validation_alias=AliasChoices("worksheet", "GOOGLE_WORKSHEET"))
    credentials_file: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("credentials_file", "GOOGLE_APPLICATION_CREDENTIALS")
    )
    title_column: int = 0
    year_column: int = 1
    identifier_column: int = 2
    skip_header: bool = Field(default=False, validation_alias=AliasChoices("skip_header", "RECONCILE_SKIP_HEADER"))
    max_workers: int = Field(
        default=DEFAULT_MAX_WORKERS, validation_alias=AliasChoices("max_workers", "RECONCILE_MAX_WORKERS")
    )
    request_timeout: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT, validation_alias=AliasChoices("request_timeout", "RECONCILE_TIMEOUT")
    )
    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES, validation_alias=AliasChoices("max_retries", "RECONCILE_MAX_RETRIES")
    )
    ambiguity_policy: str = Field(
        default="report", validation_alias=AliasChoices("ambiguity_policy", "RECONCILE_AMBIGUITY_POLICY")
    )
    stop_at_first_duplicate: bool = False
    strict_transport: bool = False

    @field_validator("ambiguity_policy")
    @classmethod
    def validate_policy(cls, v):
        if v not in AMBIGUITY_POLICIES:
            raise ValueError(
                f"unknown ambiguity policy {v!r}, expected one of {', '.join(AMBIGUITY_POLICIES)}"
            )
        return v

    @field_validator("max_workers", "max_retries", "request_timeout")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("language", "sheet_id", "worksheet", "credentials_file")
    @classmethod
    def blank_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    def require_api_key(self):
        """Raise ConfigurationError unless a TMDB key is configured."""
        if not self.tmdb_api_key:
            raise ConfigurationError("TMDB_API_KEY is not set")
        return self.tmdb_api_key

    def with_overrides(self, **changes):
        """Copy of the config with non-None changes applied and re-validated."""
        values = self.model_dump()
        values.update({k: v for k, v in changes.items() if v is not None})
        return build_config(values)


def build_config(values):
    """
    Validate a mapping of settings without reading the process environment.

    Args:
        values: Mapping keyed by field names or their environment names

    Returns:
        ReconcilerConfig

    Raises:
        ConfigurationError: If a value has the wrong type or is out of range
    """
    try:
        return ReconcilerConfig.model_validate(dict(values))
    except ValidationError as e:
        raise ConfigurationError(f"Invalid reconciler settings: {e}") from e


def load_config_from_env(environ=None):
    """
    Build the configuration from environment variables.

    Args:
        environ: Mapping to read instead of os.environ

    Returns:
        ReconcilerConfig

    Raises:
        ConfigurationError: If a value is invalid
    """
    if environ is None:
        try:
            return ReconcilerConfig()
        except ValidationError as e:
            raise ConfigurationError(f"Invalid reconciler settings: {e}") from e

    env_names = set()
    for field in ReconcilerConfig.model_fields.values():
        if isinstance(field.validation_alias, AliasChoices):
            env_names.update(c for c in field.validation_alias.choices[1:])
    values = {k: v for k, v in environ.items() if k in env_names and str(v).strip()}
    return build_config(values)


def load_config_from_secrets(secrets):
    """
    Build the configuration from Streamlit secrets.

    Expects TMDB_API_KEY at the top level and an optional [reconciler] table
    holding any ReconcilerConfig field.

    Args:
        secrets: st.secrets or any mapping with the same shape

    Returns:
        ReconcilerConfig
    """
    if "TMDB_API_KEY" not in secrets:
        raise ConfigurationError("TMDB_API_KEY not found in Streamlit secrets")

    section = dict(secrets["reconciler"]) if "reconciler" in secrets else {}
    section["tmdb_api_key"] = secrets["TMDB_API_KEY"]
    return build_config(section)
