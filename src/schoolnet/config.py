"""schoolnet.config

Connection settings for the Schoolnet API. Keys are accepted in both the
camelCase form used by existing JSON config files and snake_case.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import urljoin

from dotenv import load_dotenv
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError

__all__ = ["SchoolnetConfig", "API_PATH", "TOKEN_PATH"]

API_PATH = "/api/v1/"
TOKEN_PATH = "/api/oauth/token"

ENV_PREFIX = "SCHOOLNET_"


class SchoolnetConfig(BaseModel):
    """Configuration options for the Schoolnet client."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    client_id: str = Field(
        default="",
        validation_alias=AliasChoices("clientId", "client_id"),
        description="OAuth2 client id",
    )
    client_secret: str = Field(
        default="",
        validation_alias=AliasChoices("clientSecret", "client_secret"),
        description="OAuth2 client secret",
    )
    scope: Optional[str] = Field(
        default=None,
        description="Tenant path; sent as default_tenant_path:<scope>",
    )
    base_url: str = Field(
        default="",
        validation_alias=AliasChoices("baseUrl", "url", "baseURL", "base_url"),
        description="Server root, e.g. https://district.schoolnet.com",
    )
    timeout: float = Field(
        default=30,
        description="Per-request timeout in seconds",
    )

    @property
    def api_url(self) -> str:
        return urljoin(self._require_base_url(), API_PATH)

    @property
    def token_url(self) -> str:
        return urljoin(self._require_base_url(), TOKEN_PATH)

    def _require_base_url(self) -> str:
        if not self.base_url:
            raise ConfigurationError("A base URL (baseUrl, url or baseURL) is required")
        return self.base_url

    @classmethod
    def from_mapping(cls, data: Optional[Dict[str, Any]]) -> "SchoolnetConfig":
        try:
            return cls.model_validate(data or {})
        except ValidationError as e:
            raise ConfigurationError(str(e)) from e

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "SchoolnetConfig":
        """Load a JSON config file such as ``{"clientId": ..., "baseUrl": ...}``."""
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Could not read config file {path}: {e}") from e
        return cls.from_mapping(data)

    @classmethod
    def from_env(cls, dotenv_path: Optional[Union[str, Path]] = None) -> "SchoolnetConfig":
        """Build a config from SCHOOLNET_* variables, loading ``.env`` first."""
        load_dotenv(dotenv_path)
        data: Dict[str, Any] = {}
        for key in ("client_id", "client_secret", "scope", "base_url", "timeout"):
            value = os.getenv(ENV_PREFIX + key.upper())
            if value:
                data[key] = value
        return cls.from_mapping(data)
