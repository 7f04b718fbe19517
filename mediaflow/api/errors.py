from __future__ import annotations

from fastapi import HTTPException

from mediaflow.core.errors import (
    ApiCallError,
    ApiResponseError,
    InputValidationError,
    MediaflowError,
    TaskCancelledError,
    TaskFailedError,
    TaskTimeoutError,
)

_STATUS = (
    (InputValidationError, 422),
    (TaskTimeoutError, 504),
    (TaskCancelledError, 409),
    (TaskFailedError, 502),
    (ApiResponseError, 502),
    (ApiCallError, 502),
)


def to_http_error(e: MediaflowError) -> HTTPException:
    for kind, status in _STATUS:
        if isinstance(e, kind):
            return HTTPException(status_code=status, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))
