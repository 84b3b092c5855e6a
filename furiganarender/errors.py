"""
Error taxonomy for furigana rendering.

Every failure raised by the package derives from ``FuriganaRenderError`` and
carries a stable ``error_code`` so CLI and HTTP surfaces can report it
consistently. All errors are terminal for the render call that raised them.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class ErrorResponse:
    """Structured error payload returned by the HTTP API."""

    error_code: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"error_code": self.error_code, "message": self.message}


class FuriganaRenderError(Exception):
    """Base exception for furiganarender."""

    error_code: str = "RENDER_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error_code=self.error_code, message=self.message)


class InputValidationError(FuriganaRenderError, ValueError):
    """Caller supplied input, fonts, or options that cannot be rendered."""

    error_code: str = "INVALID_INPUT"


class LayoutPreconditionError(FuriganaRenderError, RuntimeError):
    """A layout phase ran before the phase it depends on."""

    error_code: str = "LAYOUT_PRECONDITION"


class MissingCollaboratorError(FuriganaRenderError):
    """An optional capability was requested but is not installed or configured."""

    error_code: str = "MISSING_COLLABORATOR"


class CollaboratorError(FuriganaRenderError):
    """An external collaborator (annotation provider, image encoder) failed."""

    error_code: str = "COLLABORATOR_FAILED"
