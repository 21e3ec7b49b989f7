"""Runtime settings for portrait.

Settings are read once from ``PORTRAIT_*`` environment variables; command
line flags override individual values by passing an updated copy around.
"""

import logging
import os
from typing import Optional

from pydantic import BaseModel, field_validator

from .constants import COMPANION_SUFFIX, DEFAULT_NAMESPACE

logger = logging.getLogger(__name__)


class PortraitSettings(BaseModel):
    attribute_namespace: str = DEFAULT_NAMESPACE
    companion_suffix: str = COMPANION_SUFFIX
    debug_print: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR"):
            raise ValueError(f"invalid log level: {value}")
        return value

    def attribute_path(self, name: str) -> str:
        """Full path of a surface attribute, e.g. ``portrait::fill``."""
        return f"{self.attribute_namespace}::{name}"


_settings: Optional[PortraitSettings] = None


def _env_flag(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> PortraitSettings:
    """Return the process-wide settings, loading them from the environment on first use."""
    global _settings
    if _settings is None:
        values = {}
        if os.getenv("PORTRAIT_ATTRIBUTE_NAMESPACE"):
            values["attribute_namespace"] = os.getenv("PORTRAIT_ATTRIBUTE_NAMESPACE")
        if os.getenv("PORTRAIT_COMPANION_SUFFIX"):
            values["companion_suffix"] = os.getenv("PORTRAIT_COMPANION_SUFFIX")
        debug_print = _env_flag("PORTRAIT_DEBUG_PRINT")
        if debug_print is not None:
            values["debug_print"] = debug_print
        if os.getenv("PORTRAIT_LOG_LEVEL"):
            values["log_level"] = os.getenv("PORTRAIT_LOG_LEVEL")

        _settings = PortraitSettings(**values)
        logger.debug(f"Loaded settings: {_settings.model_dump()}")
    return _settings


def reset_settings() -> None:
    """Forget cached settings (used by tests and the CLI after changing the environment)."""
    global _settings
    _settings = None
