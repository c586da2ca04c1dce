"""
Global error handling middleware.
"""
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable

from plot_capture.infrastructure.backend_client import BackendAPIError
from plot_capture.services.domain.drawing_session import (
    DrawingSessionError,
    NoActiveSessionError,
    PersistenceInProgressError,
    TooFewPointsError,
    ValidationFailedError,
    ValidationPendingError,
)


logger = logging.getLogger(__name__)

_SESSION_ERROR_STATUS = {
    NoActiveSessionError: (status.HTTP_409_CONFLICT, "No active session"),
    PersistenceInProgressError: (status.HTTP_409_CONFLICT, "Save in progress"),
    ValidationPendingError: (status.HTTP_409_CONFLICT, "Validation pending"),
    TooFewPointsError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "Too few points"),
    ValidationFailedError: (status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation failed"),
}


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Maps session rule violations and backend failures to consistent error
    responses and catches anything unhandled.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        """
        Process the request and handle any exceptions.

        Args:
            request: The incoming request
            call_next: The next middleware or route handler

        Returns:
            Response object
        """
        try:
            response = await call_next(request)
            return response

        except DrawingSessionError as e:
            status_code, error = _SESSION_ERROR_STATUS.get(
                type(e), (status.HTTP_409_CONFLICT, "Session error")
            )
            logger.info(
                f"Rejected session operation: {str(e)}",
                extra={"path": request.url.path, "method": request.method},
            )
            content = {"error": error, "detail": str(e)}
            if isinstance(e, ValidationFailedError):
                content["verdict"] = e.verdict.model_dump(by_alias=True)
            return JSONResponse(status_code=status_code, content=content)

        except BackendAPIError as e:
            logger.error(
                f"Backend error: {str(e)}",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "status_code": e.status_code,
                }
            )
            # Pass through the backend's status code when it gave one
            return JSONResponse(
                status_code=e.status_code or status.HTTP_502_BAD_GATEWAY,
                content={
                    "error": "Backend error",
                    "detail": e.message,
                }
            )

        except ValueError as e:
            logger.warning(
                f"Validation error: {str(e)}",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                }
            )
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "error": "Invalid request",
                    "detail": str(e),
                }
            )

        except Exception as e:
            logger.exception(
                f"Unhandled exception: {str(e)}",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                }
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "detail": "An unexpected error occurred",
                }
            )
