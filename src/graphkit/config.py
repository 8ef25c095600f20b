"""
Configuration management for graphkit.

Supports configuration via environment variables and .env files.
"""

from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_FIELDS: Dict[str, str] = {
    "profile": "id,name,email,picture",
    "pages": "id,name,access_token,category,tasks",
    "posts": (
        "id,message,created_time,full_picture,attachments{media},shares,"
        "likes.summary(true),comments.summary(true)"
    ),
    "lead_forms": "id,name,status,leads_count,created_time",
    "leads": "id,created_time,field_data",
}

DEFAULT_PERMISSIONS: Dict[str, List[str]] = {
    "basic": ["public_profile", "email"],
    "pages": ["pages_show_list", "pages_read_engagement"],
    "leads": ["leads_retrieval"],
    "posts": ["pages_read_engagement"],
}


class GraphConfig(BaseSettings):
    """
    Configuration settings for the Graph client.

    All settings can be configured via environment variables with the GRAPH_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="GRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Provider settings
    api_host: str = Field(
        default="graph.facebook.com",
        description="Host name of the Graph provider"
    )
    version: str = Field(
        default="v23.0",
        description="Graph API version prefix"
    )
    access_token: Optional[str] = Field(
        default=None,
        description="Static access token used when no token is passed explicitly"
    )

    # Request settings
    timeout_ms: int = Field(
        default=10_000,
        gt=0,
        description="Per-attempt request deadline in milliseconds"
    )
    retry_attempts: int = Field(
        default=3,
        ge=0,
        description="Retries after the first attempt for transient failures"
    )
    retry_delay_ms: int = Field(
        default=1_000,
        gt=0,
        description="Base delay for exponential backoff in milliseconds"
    )

    # Resource defaults
    default_fields: Dict[str, str] = Field(
        default_factory=lambda: dict(DEFAULT_FIELDS),
        description="Default field lists per resource"
    )
    default_permissions: Dict[str, List[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_PERMISSIONS.items()},
        description="Permission groups requested per feature"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )
    debug_errors: bool = Field(
        default=False,
        description="Emit diagnostic records for every surfaced API error"
    )

    @property
    def base_url(self) -> str:
        """Provider root without the version segment."""
        return f"https://{self.api_host}"

    def fields_for(self, resource: str) -> str:
        """Get the default field list for a resource."""
        return self.default_fields.get(resource, DEFAULT_FIELDS.get(resource, "id"))


# Global config instance
_config: Optional[GraphConfig] = None


def get_config() -> GraphConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = GraphConfig()
    return _config


def set_config(config: GraphConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Drop the global configuration so the next access reloads defaults."""
    global _config
    _config = None
