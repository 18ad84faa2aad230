# /*
# Copyright 2026 The arc-manager Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Configuration model, file loading, validation, and display."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from arc_manager import console, phase
from arc_manager.constants import (
    DEFAULT_CLUSTER_NAME,
    DEFAULT_MAX_RUNNERS,
    DEFAULT_MIN_RUNNERS,
    DEFAULT_RUNNER_NAMESPACE,
    DEFAULT_SCALE_SET_NAME,
    GITHUB_URL,
    K3D_RESOURCE_PREFIX,
    PRIVATE_KEY_SAFE_MODE_MASK,
)
from arc_manager.errors import ConfigError

# Lower-case RFC 1123 label, as accepted by k3d, namespaces and helm releases.
DNS_LABEL_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


class AuthMode(str, enum.Enum):
    """How the runner controller authenticates to GitHub."""

    APP = "app"
    TOKEN = "token"


# ============================================================================
# Configuration model
# ============================================================================

class ArcConfig(BaseSettings):
    """Settings loaded from a flat KEY=VALUE file.

    Only the file and explicit keyword arguments are consulted; the process
    environment is never read. Keys are matched case-insensitively, unknown
    keys are ignored, and empty values count as unset.

    Attributes:
        github_app_id: GitHub App ID (App mode).
        github_app_installation_id: GitHub App installation ID (App mode).
        github_app_private_key_path: Path to the App's PEM private key (App mode).
        github_pat: Personal access token (Token mode).
        github_org: Organization (or user) the runners register with.
        github_repo: Repository name, empty for organization-level runners.
        runner_scale_set_name: Helm release name and ``runs-on`` label.
        min_runners: Minimum idle runners.
        max_runners: Maximum concurrent runners.
        k3d_cluster_name: Name of the k3d cluster.
        runner_namespace: Namespace holding the scale sets and secret.
        enable_cache_proxy: Whether to deploy the caching proxies.
    """

    model_config = SettingsConfigDict(
        extra="ignore",
        frozen=True,
        case_sensitive=False,
        env_ignore_empty=True,
    )

    github_app_id: str = ""
    github_app_installation_id: str = ""
    github_app_private_key_path: Path | None = None
    github_pat: str = ""
    github_org: str = ""
    github_repo: str = ""
    runner_scale_set_name: str = Field(default=DEFAULT_SCALE_SET_NAME, pattern=DNS_LABEL_PATTERN)
    min_runners: int = Field(default=DEFAULT_MIN_RUNNERS, ge=0)
    max_runners: int = Field(default=DEFAULT_MAX_RUNNERS, ge=1)
    k3d_cluster_name: str = Field(default=DEFAULT_CLUSTER_NAME, pattern=DNS_LABEL_PATTERN)
    runner_namespace: str = Field(default=DEFAULT_RUNNER_NAMESPACE, pattern=DNS_LABEL_PATTERN)
    enable_cache_proxy: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return init_settings, dotenv_settings

    @field_validator("github_app_private_key_path")
    @classmethod
    def _expand_key_path(cls, value: Path | None) -> Path | None:
        return value.expanduser() if value is not None else None

    @model_validator(mode="after")
    def _check_runner_bounds(self) -> ArcConfig:
        if self.max_runners < self.min_runners:
            raise ValueError(
                f"MAX_RUNNERS ({self.max_runners}) must be >= MIN_RUNNERS ({self.min_runners})"
            )
        return self

    @property
    def auth_mode(self) -> AuthMode | None:
        """Selected authentication mode, App taking precedence over Token."""
        if self.github_app_id or self.github_app_installation_id or self.github_app_private_key_path:
            return AuthMode.APP
        if self.github_pat:
            return AuthMode.TOKEN
        return None

    @property
    def github_config_url(self) -> str:
        """Registration URL: organization-scoped unless a repository is set."""
        if self.github_repo:
            return f"{GITHUB_URL}/{self.github_org}/{self.github_repo}"
        return f"{GITHUB_URL}/{self.github_org}"

    @property
    def kube_context(self) -> str:
        return f"{K3D_RESOURCE_PREFIX}{self.k3d_cluster_name}"


# ============================================================================
# Teardown options
# ============================================================================

@dataclass(frozen=True)
class TeardownOptions:
    """Phases to omit during teardown, resolved once at start.

    Attributes:
        keep_cluster: Leave the k3d cluster in place.
        keep_registry: Leave the local registry, pushed images and cache directories.
        keep_user: Leave the service account and its home directory.
    """

    keep_cluster: bool = False
    keep_registry: bool = False
    keep_user: bool = False


# ============================================================================
# Loading and validation
# ============================================================================

def _format_validation_error(err: ValidationError) -> str:
    parts = []
    for item in err.errors():
        key = ".".join(str(loc) for loc in item["loc"]).upper() or "config"
        parts.append(f"{key}: {item['msg']}")
    return "; ".join(parts)


def load_config(config_file: Path | None = None) -> ArcConfig:
    """Load configuration from *config_file*, or defaults when None.

    Args:
        config_file: Path to a KEY=VALUE file.

    Returns:
        The immutable configuration.

    Raises:
        ConfigError: If the file does not exist or a value is invalid.
    """
    if config_file is not None and not config_file.is_file():
        raise ConfigError(f"Config file not found: {config_file}")
    try:
        if config_file is None:
            return ArcConfig()
        return ArcConfig(_env_file=config_file)
    except ValidationError as err:
        raise ConfigError(f"Invalid configuration: {_format_validation_error(err)}") from err


def validate_for_setup(cfg: ArcConfig) -> list[str]:
    """Check every field setup needs before anything is mutated.

    Args:
        cfg: Loaded configuration.

    Returns:
        Non-fatal warnings, such as loose private-key permissions.

    Raises:
        ConfigError: If an authentication field or GITHUB_ORG is missing,
            or the private key file does not exist.
    """
    warnings: list[str] = []
    mode = cfg.auth_mode
    if mode is None:
        raise ConfigError(
            "No GitHub credentials configured: set GITHUB_APP_ID, GITHUB_APP_INSTALLATION_ID "
            "and GITHUB_APP_PRIVATE_KEY_PATH, or GITHUB_PAT"
        )

    if mode is AuthMode.APP:
        required = {
            "GITHUB_APP_ID": cfg.github_app_id,
            "GITHUB_APP_INSTALLATION_ID": cfg.github_app_installation_id,
            "GITHUB_APP_PRIVATE_KEY_PATH": cfg.github_app_private_key_path,
        }
        missing = [key for key, value in required.items() if not value]
        if missing:
            raise ConfigError(f"{', '.join(missing)} not set in config")
        key_path = cfg.github_app_private_key_path
        if not key_path.is_file():
            raise ConfigError(f"Private key file not found: {key_path}")
        if key_path.stat().st_mode & PRIVATE_KEY_SAFE_MODE_MASK:
            warnings.append(
                f"Private key {key_path} is readable by group or others; consider chmod 600"
            )
        if cfg.github_pat:
            warnings.append("Both GitHub App credentials and GITHUB_PAT are set; using the GitHub App")

    if not cfg.github_org:
        raise ConfigError("GITHUB_ORG not set in config")
    return warnings


# ============================================================================
# Display
# ============================================================================

def display_config(cfg: ArcConfig) -> None:
    """Print the resolved configuration with credentials redacted.

    Args:
        cfg: Loaded configuration.
    """
    phase("Configuration")
    mode = cfg.auth_mode
    console.print(f"  auth_mode        : {mode.value if mode else '(none)'}")
    if mode is AuthMode.APP:
        console.print(f"  app_id           : {cfg.github_app_id}")
        console.print(f"  installation_id  : {cfg.github_app_installation_id}")
        console.print(f"  private_key_path : {cfg.github_app_private_key_path}")
    elif mode is AuthMode.TOKEN:
        console.print("  github_pat       : ****")
    console.print(f"  target           : {cfg.github_config_url}")
    console.print(f"  scale_set        : {cfg.runner_scale_set_name}")
    console.print(f"  runners          : {cfg.min_runners}..{cfg.max_runners}")
    console.print(f"  cluster          : {cfg.k3d_cluster_name}")
    console.print(f"  namespace        : {cfg.runner_namespace}")
    console.print(f"  cache_proxy      : {'enabled' if cfg.enable_cache_proxy else 'disabled'}")
