"""
furiganarender package initialization.

Renders Japanese text with furigana into raster images. The layout engine lives
in ``layout``, input handling in ``ingest``, drawing in ``render``, with CLI and
HTTP API facets on top.
"""

__all__ = [
    "api",
    "cli",
    "ingest",
    "layout",
    "render",
]
