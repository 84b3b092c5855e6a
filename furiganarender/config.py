"""
Configuration management for furiganarender.

Provides defaults for fonts, output format, annotation detection and page
geometry through environment variables, shared by the CLI and the HTTP API.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from furiganarender.ingest.annotation import (
    AnnotationProvider,
    KakasiAnnotationProvider,
    RubyMarkupAnnotationProvider,
)
from furiganarender.render.options import RenderOptions, resolve_options

ANNOTATION_MODES = ("kakasi", "markup", "none")

# Environment variable -> RenderOptions field
_OPTION_ENV_VARS = {
    "FURIGANARENDER_MAX_WIDTH": "max_width_in_pixels",
    "FURIGANARENDER_MIN_WIDTH": "min_width_in_pixels",
    "FURIGANARENDER_MAX_HEIGHT": "max_height_in_pixels",
    "FURIGANARENDER_MIN_HEIGHT": "min_height_in_pixels",
    "FURIGANARENDER_LEFT_PADDING": "left_padding",
    "FURIGANARENDER_RIGHT_PADDING": "right_padding",
    "FURIGANARENDER_TOP_PADDING": "top_padding",
    "FURIGANARENDER_BOTTOM_PADDING": "bottom_padding",
    "FURIGANARENDER_PADDING_BETWEEN_ANNOTATION_AND_BASE": "padding_between_annotation_and_base",
    "FURIGANARENDER_PADDING_BETWEEN_LINES": "padding_between_lines",
    "FURIGANARENDER_BACKGROUND_COLOR": "background_color",
    "FURIGANARENDER_TEXT_COLOR": "text_color",
}


@dataclass
class RendererConfig:
    """Main configuration for furiganarender."""

    base_font: str = "40px NotoSansCJK-Regular.ttc"
    annotation_font: str = "20px NotoSansCJK-Regular.ttc"
    image_format: str = "PNG"

    # Plain-text annotation: "kakasi", "markup" or "none"
    annotation_mode: str = "kakasi"

    options: RenderOptions = field(default_factory=RenderOptions)

    def __post_init__(self) -> None:
        if self.annotation_mode not in ANNOTATION_MODES:
            raise ValueError(
                f"annotation_mode must be one of {', '.join(ANNOTATION_MODES)} "
                f"(got '{self.annotation_mode}')"
            )

    @classmethod
    def from_env(cls) -> RendererConfig:
        """Create configuration from environment variables."""
        overrides: dict[str, Any] = {
            name: os.environ[var] for var, name in _OPTION_ENV_VARS.items() if var in os.environ
        }
        return cls(
            base_font=os.environ.get("FURIGANARENDER_BASE_FONT", "40px NotoSansCJK-Regular.ttc"),
            annotation_font=os.environ.get(
                "FURIGANARENDER_ANNOTATION_FONT", "20px NotoSansCJK-Regular.ttc"
            ),
            image_format=os.environ.get("FURIGANARENDER_IMAGE_FORMAT", "PNG").upper(),
            annotation_mode=os.environ.get("FURIGANARENDER_ANNOTATION_MODE", "kakasi").lower(),
            options=resolve_options(overrides),
        )

    def annotation_provider(self, *, markup: bool = False) -> AnnotationProvider | None:
        """Build the provider for plain-text input; ``markup`` forces ruby parsing."""
        if markup or self.annotation_mode == "markup":
            return RubyMarkupAnnotationProvider()
        if self.annotation_mode == "kakasi":
            return KakasiAnnotationProvider()
        return None


# Global configuration instance
_config: RendererConfig | None = None


def get_config() -> RendererConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = RendererConfig.from_env()
    return _config


def set_config(config: RendererConfig | None) -> None:
    """Set the global configuration instance (``None`` re-reads the environment)."""
    global _config
    _config = config
