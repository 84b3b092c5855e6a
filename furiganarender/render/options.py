"""
Validated rendering options.

All layout and color settings live in one pydantic model that is validated once
at the API boundary. Both snake_case names and the camelCase aliases used by
JSON clients (``maxWidthInPixels``) are accepted.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from typing import Any

from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from furiganarender.errors import InputValidationError


class RenderOptions(BaseModel):
    """Page geometry and color settings for a render call."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )

    max_width_in_pixels: int = Field(default=1000, ge=1)
    min_width_in_pixels: int = Field(default=0, ge=0)
    max_height_in_pixels: int = Field(default=sys.maxsize, ge=1)
    min_height_in_pixels: int = Field(default=0, ge=0)
    left_padding: int = Field(default=10, ge=0)
    right_padding: int = Field(default=10, ge=0)
    top_padding: int = Field(default=10, ge=0)
    bottom_padding: int = Field(default=10, ge=0)
    padding_between_annotation_and_base: int = Field(default=3, ge=0)
    padding_between_lines: int = Field(default=10, ge=0)
    background_color: str = "white"
    text_color: str = "black"

    @field_validator("background_color", "text_color")
    @classmethod
    def _validate_color(cls, value: str) -> str:
        try:
            ImageColor.getrgb(value)
        except ValueError as exc:
            raise ValueError(f"Unknown color '{value}'.") from exc
        return value

    @model_validator(mode="after")
    def _validate_ranges(self) -> RenderOptions:
        if self.min_width_in_pixels > self.max_width_in_pixels:
            raise ValueError("min_width_in_pixels must not exceed max_width_in_pixels.")
        if self.min_height_in_pixels > self.max_height_in_pixels:
            raise ValueError("min_height_in_pixels must not exceed max_height_in_pixels.")
        return self

    @property
    def line_budget(self) -> int:
        """Width available to a line once horizontal padding is removed."""
        return self.max_width_in_pixels - self.left_padding - self.right_padding


def resolve_options(options: RenderOptions | Mapping[str, Any] | None) -> RenderOptions:
    """Coerce caller-supplied options into a validated ``RenderOptions``."""
    if options is None:
        return RenderOptions()
    if isinstance(options, RenderOptions):
        return options
    if not isinstance(options, Mapping):
        raise InputValidationError(
            f"Options must be a mapping or RenderOptions, got {type(options).__name__}."
        )
    try:
        return RenderOptions.model_validate(dict(options))
    except ValidationError as exc:
        raise InputValidationError(f"Invalid render options: {exc}") from exc


def merge_options(
    base: RenderOptions, overrides: Mapping[str, Any] | None
) -> RenderOptions:
    """
    Apply ``overrides`` on top of ``base`` and validate the result.

    Override keys may use either the field name or its camelCase alias; both
    resolve to the same field.
    """
    if not overrides:
        return base
    if not isinstance(overrides, Mapping):
        raise InputValidationError(
            f"Options must be a mapping, got {type(overrides).__name__}."
        )
    field_names = {
        field.alias: name for name, field in RenderOptions.model_fields.items() if field.alias
    }
    merged = base.model_dump()
    for key, value in overrides.items():
        merged[field_names.get(key, key)] = value
    return resolve_options(merged)
