"""Translate engine errors into HTTP responses.

Handlers wrap service calls in `except EngineError as e: raise
http_error(e) from None`.  The response detail is always
`{"error": kind, "message": ..., **extra}`.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from progression.services.errors import (
    AlreadyEnrolled,
    AlreadyGraded,
    CertificateUnavailable,
    EngineError,
    IneligibleEnrollment,
    InvalidActivityDate,
    InvalidAnswerSet,
    NotEnrolled,
    NotFound,
)

_STATUS: dict[type[EngineError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    NotEnrolled: status.HTTP_403_FORBIDDEN,
    IneligibleEnrollment: status.HTTP_409_CONFLICT,
    AlreadyGraded: status.HTTP_409_CONFLICT,
    InvalidAnswerSet: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidActivityDate: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AlreadyEnrolled: status.HTTP_409_CONFLICT,
    CertificateUnavailable: status.HTTP_409_CONFLICT,
}


def http_error(exc: EngineError) -> HTTPException:
    return HTTPException(
        status_code=_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST),
        detail={"error": exc.kind, "message": str(exc), **exc.details()},
    )
