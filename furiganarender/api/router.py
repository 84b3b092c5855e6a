"""FastAPI application exposing furigana rendering over HTTP."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from furiganarender.config import RendererConfig, get_config
from furiganarender.errors import (
    CollaboratorError,
    FuriganaRenderError,
    InputValidationError,
    MissingCollaboratorError,
)
from furiganarender.ingest.annotation import AnnotationProvider
from furiganarender.render.image_renderer import render_async
from furiganarender.render.options import merge_options

MEDIA_TYPES = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
}

_ERROR_STATUS = {
    InputValidationError: 400,
    MissingCollaboratorError: 501,
    CollaboratorError: 502,
}


class PairPayload(BaseModel):
    base: str
    annotation: str = ""


class RenderRequest(BaseModel):
    """Body of ``POST /v1/render``; exactly one of ``text`` or ``pairs``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text: str | None = None
    pairs: list[PairPayload] | None = None
    markup: bool = False
    base_font: str | None = None
    annotation_font: str | None = None
    image_format: str | None = Field(default=None, alias="format")
    options: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _validate_source(self) -> RenderRequest:
        if (self.text is None) == (self.pairs is None):
            raise ValueError("Provide exactly one of 'text' or 'pairs'.")
        if self.image_format is not None and self.image_format.upper() not in MEDIA_TYPES:
            raise ValueError(
                f"Unsupported format '{self.image_format}'; choose from "
                f"{', '.join(sorted(MEDIA_TYPES))}."
            )
        return self


class _ProviderCache:
    """Builds annotation providers on first use and keeps them for the app's lifetime."""

    def __init__(self, config: Callable[[], RendererConfig]) -> None:
        self._config = config
        self._providers: dict[bool, AnnotationProvider | None] = {}

    def get(self, *, markup: bool) -> AnnotationProvider | None:
        if markup not in self._providers:
            self._providers[markup] = self._config().annotation_provider(markup=markup)
        return self._providers[markup]


def create_app(*, config: RendererConfig | None = None) -> FastAPI:
    def current_config() -> RendererConfig:
        return config or get_config()

    providers = _ProviderCache(current_config)

    router = APIRouter()

    @router.post("/v1/render")
    async def render_image(payload: RenderRequest) -> Response:
        settings = current_config()
        image_format = (payload.image_format or settings.image_format).upper()
        options = merge_options(settings.options, payload.options)

        if payload.text is not None:
            text: Any = payload.text
            provider = providers.get(markup=payload.markup)
        else:
            text = [pair.model_dump() for pair in payload.pairs or []]
            provider = None

        image = await render_async(
            text,
            payload.base_font or settings.base_font,
            payload.annotation_font or settings.annotation_font,
            options,
            annotation_provider=provider,
            image_format=image_format,
        )
        return Response(image, media_type=MEDIA_TYPES.get(image_format, "application/octet-stream"))

    app = FastAPI(title="Furigana Render API", version="0.1.0")
    app.include_router(router)

    @app.exception_handler(FuriganaRenderError)
    async def render_error_handler(request: Request, exc: FuriganaRenderError) -> JSONResponse:
        status_code = next(
            (code for kind, code in _ERROR_STATUS.items() if isinstance(exc, kind)), 500
        )
        return JSONResponse(exc.to_response().to_dict(), status_code=status_code)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


# Convenience application instance for ASGI servers
app = create_app()
