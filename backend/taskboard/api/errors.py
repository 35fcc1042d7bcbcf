"""Translate service-layer errors into HTTP responses."""

from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar, cast

from fastapi import HTTPException, status

from taskboard.core.errors import AccessDenied, Conflict, Gone, NotFound, ServiceError

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

ERROR_KIND_HEADER = "X-Error-Kind"

_STATUS_BY_ERROR: tuple[tuple[type[ServiceError], int], ...] = (
    (AccessDenied, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (Conflict, status.HTTP_409_CONFLICT),
    (Gone, status.HTTP_410_GONE),
)


def http_error(exc: ServiceError) -> HTTPException:
    status_code = status.HTTP_400_BAD_REQUEST
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            status_code = code
            break
    return HTTPException(
        status_code=status_code,
        detail=exc.message,
        headers={ERROR_KIND_HEADER: exc.kind},
    )


def translate_service_errors(fn: F) -> F:
    """
    Decorator which translates service exceptions into HTTPExceptions while
    preserving the wrapped function's signature so FastAPI/OpenAPI behave correctly.
    """

    @wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await fn(*args, **kwargs)
        except ServiceError as exc:
            raise http_error(exc) from exc

    return cast(F, wrapper)
