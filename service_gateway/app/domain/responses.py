"""
Response shaping for Gateway routes.

Success bodies are the raw record(s) or ``{"success": true}``; every error
body is ``{"error": <message>}``.
"""

from dataclasses import dataclass
import functools
from typing import Any, Callable, Optional

from fastapi.responses import JSONResponse

from shared.logging import get_logger
from shared.errors import ErrorResponse, GatewayException, NotFoundError, StoreError
from ..adapters.store_client import StoreFailure

logger = get_logger("gateway.responses")


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def exception_response(exc: GatewayException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_response().model_dump())


def success_response(status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": True})


def data_response(data: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=data)


@dataclass(frozen=True)
class FailurePolicy:
    """How one route reports failures.

    ``tag`` goes to the server log with the underlying message; ``message`` is
    the generic text the client sees. When ``not_found_message`` is set, a
    single-row miss answers 404 with it instead of 500.
    """

    tag: str
    message: str
    not_found_message: Optional[str] = None

    def store_failure(self, failure: StoreFailure) -> JSONResponse:
        logger.error(self.tag, error=failure.message, code=failure.code)
        details = {"code": failure.code, "status_code": failure.status_code}
        if self.not_found_message and failure.is_not_found:
            return exception_response(NotFoundError(self.not_found_message, details))
        return exception_response(StoreError(self.message, details))

    def unexpected(self, exc: Exception) -> JSONResponse:
        logger.error(self.tag, error=str(exc), exc_info=True)
        return error_response(500, self.message)

    def guard(self, handler: Callable) -> Callable:
        """Wrap a route handler so stray exceptions become this route's 500.

        Gateway exceptions (validation, authentication) pass through to the
        service's exception handler.
        """
        @functools.wraps(handler)
        async def wrapper(*args, **kwargs):
            try:
                return await handler(*args, **kwargs)
            except GatewayException:
                raise
            except Exception as e:
                return self.unexpected(e)

        return wrapper
