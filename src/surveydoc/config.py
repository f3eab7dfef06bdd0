"""Engine settings.

Defaults live on the model; each value can be overridden through a
``SURVEYDOC_<FIELD>`` environment variable (e.g. ``SURVEYDOC_PREVIEW_CHARS``).
Validation is done by pydantic so a bad override fails loudly at load time.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


ENV_PREFIX = "SURVEYDOC_"
logger = logging.getLogger(__name__)


class EngineSettings(BaseModel):
    default_survey_title: str = "Survey"
    default_page_title: str = "Page"
    default_section_title: str = "Section"
    default_block_title: str = "Block"
    # Characters of raw model output echoed back on INVALID_INPUT
    preview_chars: int = Field(default=1200, ge=0)
    # Random part of generated identifiers
    id_length: int = Field(default=8, ge=4, le=32)

    @field_validator(
        "default_survey_title",
        "default_page_title",
        "default_section_title",
        "default_block_title",
    )
    @classmethod
    def title_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("default titles must be non-empty strings")
        return v


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for name in EngineSettings.model_fields:
        raw = environ.get(ENV_PREFIX + name.upper())
        if raw is not None:
            overrides[name] = raw
    return overrides


def load_settings(environ: Optional[Mapping[str, str]] = None) -> EngineSettings:
    """Build settings from defaults plus ``SURVEYDOC_*`` overrides.

    Raises:
        ValueError: if an override does not validate.
    """
    env = os.environ if environ is None else environ
    overrides = _env_overrides(env)
    try:
        settings = EngineSettings(**overrides)
    except PydanticValidationError as e:
        raise ValueError(f"Invalid engine settings: {e}") from e
    if overrides:
        logger.info("Engine settings overridden from environment: %s", sorted(overrides))
    return settings


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Process-wide settings, loaded once from the environment."""
    return load_settings()
