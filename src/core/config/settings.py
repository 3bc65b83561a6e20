"""
Settings — runtime configuration derived from the environment.

Nothing is read from or written to disk: every run starts from the
process environment alone.

    HOME                      install-directory root (required)
    PROVISION_OS_RELEASE      os-release path (default /etc/os-release)
    PROVISION_LOG_LEVEL       DEBUG / INFO / WARNING / ERROR
    PROVISION_LOG_FILE        optional log file
    PROVISION_HTTP_TIMEOUT    seconds; unset means the OS default
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PROVISION_"


class ConfigError(Exception):
    """Raised when the environment cannot produce valid settings."""


class Settings(BaseModel):
    """Validated runtime settings."""

    model_config = ConfigDict(frozen=True)

    home: Path
    os_release: Path = Path("/etc/os-release")
    log_level: str = "WARNING"
    log_file: str | None = None
    http_timeout: float | None = None

    @property
    def local_bin(self) -> Path:
        return self.home / ".local" / "bin"

    @property
    def local_share(self) -> Path:
        return self.home / ".local" / "share"


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build ``Settings`` from ``environ`` (default: ``os.environ``).

    Raises:
        ConfigError: ``HOME`` is unset or a value fails validation.
    """
    env = os.environ if environ is None else environ

    home = env.get("HOME", "").strip()
    if not home:
        raise ConfigError("HOME is not set; cannot resolve install directories")

    data: dict[str, object] = {"home": home}
    for field in ("os_release", "log_level", "log_file", "http_timeout"):
        value = env.get(ENV_PREFIX + field.upper(), "").strip()
        if value:
            data[field] = value

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid settings: {e}") from e

    logger.debug("Settings: %s", settings)
    return settings
