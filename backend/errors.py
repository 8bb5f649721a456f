# errors.py — Domain error hierarchy for Trackline mutations
"""
Three failure kinds surface from mutations:

- Unauthorized: no resolvable authenticated identity
- NotFound:     a referenced row does not exist (or lives in another workspace)
- Conflict:     a uniqueness or referential-integrity rule would be broken

Queries never raise these for "nothing found"; they return null or [].
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger("trackline.errors")


class TracklineError(Exception):
    """Base exception for all Trackline domain errors."""

    code = "error"
    http_status = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_response(self, request_id=None) -> dict:
        return {
            "detail": self.message,
            "code": self.code,
            "request_id": request_id,
        }


class Unauthorized(TracklineError):
    code = "unauthorized"
    http_status = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(TracklineError):
    code = "not_found"
    http_status = 404


class Conflict(TracklineError):
    code = "conflict"
    http_status = 409


def register_error_handlers(app: FastAPI) -> None:
    """Render domain errors as structured JSON."""

    @app.exception_handler(TracklineError)
    async def trackline_error_handler(request: Request, exc: TracklineError):
        logger.warning(
            f"{exc.code}: {exc.message} [{request.method} {request.url.path}]"
        )
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(getattr(request.state, "request_id", None)),
        )
