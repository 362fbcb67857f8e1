"""Application configuration."""

import os
from typing import Literal

from pydantic import BaseModel, Field


class PenpalsConfig(BaseModel):
    """
    Core penpals configuration.

    Secrets (gateway credentials, admin password, Valkey URL) live in Vault,
    not here. See clients/vault_client.py.
    """

    # Delivery
    delivery_delay_minutes: int = Field(
        default=720,  # 12 hours, like a real letter
        description="Delay between sending a message and the recipient seeing it",
        ge=1,
    )

    # Content rules
    min_message_length: int = Field(
        default=10,
        description="Minimum characters in a message",
        ge=1,
    )
    min_intro_length: int = Field(
        default=20,
        description="Minimum characters in an introduction",
        ge=1,
    )

    # Application
    app_name: str = Field(
        default="UCSC Penpals",
        description="Application name for emails",
    )
    website_url: str = Field(
        default="http://localhost:3000",
        description="Base URL linked from notification emails",
    )
    admin_email: str | None = Field(
        default=None,
        description="Address notified when a user submits an introduction",
    )

    # Persistence
    store_backend: Literal["file", "valkey"] = Field(
        default="file",
        description="Where the database document lives",
    )
    data_file: str = Field(
        default="database.json",
        description="Path of the JSON document for the file backend",
    )
    store_key: str = Field(
        default="penpals:database",
        description="Valkey key holding the document for the valkey backend",
    )
    store_cache_ttl_seconds: int = Field(
        default=5,
        description="How long a loaded document is reused before re-reading Valkey",
        ge=0,
        le=60,
    )

    @classmethod
    def from_env(cls) -> "PenpalsConfig":
        """Build config from PENPALS_* environment variables; unset keys keep defaults."""
        env_keys = {
            "delivery_delay_minutes": "PENPALS_DELIVERY_DELAY_MINUTES",
            "min_message_length": "PENPALS_MIN_MESSAGE_LENGTH",
            "min_intro_length": "PENPALS_MIN_INTRO_LENGTH",
            "website_url": "PENPALS_WEBSITE_URL",
            "admin_email": "PENPALS_ADMIN_EMAIL",
            "store_backend": "PENPALS_STORE_BACKEND",
            "data_file": "PENPALS_DATA_FILE",
            "store_key": "PENPALS_STORE_KEY",
        }
        values = {
            field: os.environ[var]
            for field, var in env_keys.items()
            if os.getenv(var)
        }
        return cls(**values)
