"""Paging settings.

Defaults for page sizes and placeholder behaviour shared by every paging
source. Centralizing them keeps consumers consistent and lets operators
tune window sizes without code changes.

Environment variables use PAGING_ prefix.
Example: PAGING_DEFAULT_PAGE_SIZE=50, PAGING_MAX_PAGE_SIZE=200
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PagingSettings(BaseSettings):
    """Paging configuration settings.

    Attributes:
        default_page_size: Page size used when the consumer does not pick one.
        max_page_size: Largest page size a consumer may request.
        initial_load_size_multiplier: Initial (refresh) load size as a
            multiple of the page size.
        enable_placeholders: Whether consumers should reserve slots for
            unloaded items using ``items_before``/``items_after``.

    Example:
        settings = PagingSettings()
        config = PagingConfig.from_settings(settings)
    """

    default_page_size: int = Field(
        default=20,
        ge=1,
        le=10000,
        description="Default page size when not specified",
    )
    max_page_size: int = Field(
        default=500,
        ge=1,
        le=100000,
        description="Maximum allowed page size (hard limit)",
    )
    initial_load_size_multiplier: int = Field(
        default=3,
        ge=1,
        le=100,
        description="Initial load size as a multiple of the page size",
    )
    enable_placeholders: bool = Field(
        default=True,
        description="Report surrounding item counts for placeholder rendering",
    )

    model_config = SettingsConfigDict(
        env_prefix="PAGING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )
