"""Generic API response envelope."""

from pydantic import BaseModel


class ApiError(BaseModel):
    """Structured error detail."""

    code: str
    message: str
    field: str | None = None


def success_response(data: object, **meta: object) -> dict:
    """Build a success envelope dict."""
    return {
        "status": "success",
        "data": data,
        "errors": [],
        "meta": meta,
    }


def error_response(errors: list[ApiError]) -> dict:
    """Build an error envelope dict."""
    return {
        "status": "error",
        "data": None,
        "errors": [e.model_dump() for e in errors],
        "meta": {},
    }


def error_envelope(code: str, message: str) -> dict:
    """Envelope for a single error."""
    return error_response([ApiError(code=code, message=message)])
