"""
Infrastructure layer: farm management backend client.

Idempotent reads are retried with exponential backoff. Validation and
persistence calls are single-shot.
"""
import logging
from typing import Any, Optional

import httpx
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from plot_capture.config import settings
from plot_capture.domain.models import (
    Plot,
    PlotBoundaryUpdate,
    PolygonTask,
    ValidationVerdict,
)
from plot_capture.infrastructure.api_constants import APIConstants, BackendEndpoints

logger = logging.getLogger(__name__)

_PAGED_RESULT_KEYS = {"currentPage", "totalPages", "totalCount"}


class BackendAPIError(Exception):
    """Raised when the backend call fails or reports an unsuccessful result."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code >= 500
    return isinstance(exc, httpx.RequestError)


class BackendClient:
    """
    Client for the farm management backend.

    Unwraps the backend's ``{succeeded, data, message, errors}`` envelope.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None):
        """Initialize the client from settings unless overridden."""
        self.base_url = base_url or settings.backend_api_base_url
        headers = {"accept": APIConstants.CONTENT_TYPE_JSON}
        token = token if token is not None else settings.backend_api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=settings.backend_timeout_seconds,
        )

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def _send(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        response = await self.client.request(method, endpoint, **kwargs)
        response.raise_for_status()
        return response

    @retry(
        stop=stop_after_attempt(settings.max_retry_attempts),
        wait=wait_exponential(
            multiplier=settings.retry_backoff_multiplier,
            min=settings.retry_min_wait,
            max=settings.retry_max_wait,
        ),
        retry=retry_if_exception(_is_retryable),
        reraise=True,
    )
    async def _send_with_retry(self, method: str, endpoint: str, **kwargs) -> httpx.Response:
        return await self._send(method, endpoint, **kwargs)

    async def _request(
        self,
        method: str,
        endpoint: str,
        idempotent: bool = False,
        **kwargs,
    ) -> Any:
        """
        Make an HTTP request and unwrap the result envelope.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            idempotent: Retry 5xx and transport errors with backoff
            **kwargs: Additional arguments for the request

        Returns:
            Unwrapped response data (None for an empty body)

        Raises:
            BackendAPIError: If the request fails or the backend reports failure
        """
        send = self._send_with_retry if idempotent else self._send
        try:
            response = await send(method, endpoint, **kwargs)
        except httpx.HTTPStatusError as e:
            raise BackendAPIError(
                self._error_message(e.response),
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise BackendAPIError(f"Backend request error: {str(e)}") from e

        if not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as e:
            raise BackendAPIError(
                f"Backend returned invalid JSON for {method} {endpoint}",
                status_code=response.status_code,
            ) from e
        return self._unwrap(payload)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            detail = "\n".join(body.get("errors") or []) or body.get("message")
            if detail:
                return f"{response.status_code} - {detail}"
        return f"{response.status_code} - {response.text or response.reason_phrase}"

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        """Strip the Result envelope; paged results are returned whole."""
        if not isinstance(payload, dict) or not isinstance(payload.get("succeeded"), bool):
            return payload

        if not payload["succeeded"]:
            errors = payload.get("errors") or []
            message = "\n".join(errors) or payload.get("message") or "Request failed"
            logger.error(f"Backend returned error: {message}")
            raise BackendAPIError(message)

        if _PAGED_RESULT_KEYS <= payload.keys():
            return payload
        return payload.get("data")

    async def validate_polygon_area(
        self,
        plot_id: str,
        polygon_geojson: str,
        tolerance_percent: float,
    ) -> ValidationVerdict:
        """
        Ask the backend to compare a drawn polygon's area with the plot's.

        Raises:
            BackendAPIError: If the request fails or no verdict is returned
        """
        data = await self._request(
            "POST",
            BackendEndpoints.VALIDATE_POLYGON_AREA,
            json={
                "plotId": plot_id,
                "polygonGeoJson": polygon_geojson,
                "tolerancePercent": tolerance_percent,
            },
        )
        if not data:
            raise BackendAPIError(f"No validation result returned for plot {plot_id}")
        return ValidationVerdict.model_validate(data)

    async def complete_polygon_task(
        self,
        task_id: str,
        polygon_geojson: str,
        notes: Optional[str] = None,
    ) -> None:
        await self._request(
            "POST",
            BackendEndpoints.complete_polygon_task(task_id),
            json={"polygonGeoJson": polygon_geojson, "notes": notes},
        )

    async def update_plot(self, update: PlotBoundaryUpdate) -> PlotBoundaryUpdate:
        """
        Replace a plot record, including its WKT boundary.

        Unset fields are left out of the body so the backend keeps its
        stored values for them.

        Returns:
            The updated plot as echoed by the backend
        """
        data = await self._request(
            "PUT",
            BackendEndpoints.PLOTS,
            json=update.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        if not data:
            return update
        return PlotBoundaryUpdate.model_validate(data)

    async def get_polygon_tasks(self) -> list[PolygonTask]:
        """Fetch pending polygon-drawing tasks."""
        data = await self._request(
            "GET",
            BackendEndpoints.POLYGON_TASKS,
            idempotent=True,
            params={"status": APIConstants.PENDING_TASK_STATUS},
        )
        if not isinstance(data, list):
            return []
        return [PolygonTask.model_validate(item) for item in data]

    async def get_plots(self) -> list[Plot]:
        """Fetch the first page of plots."""
        data = await self._request(
            "GET",
            BackendEndpoints.PLOTS,
            idempotent=True,
            params={
                "pageNumber": APIConstants.FIRST_PAGE,
                "pageSize": settings.plots_page_size,
            },
        )
        if isinstance(data, dict):
            data = data.get("data")
        if not isinstance(data, list):
            return []
        return [Plot.model_validate(item) for item in data]


# Singleton instance
_backend_client: Optional[BackendClient] = None


def get_backend_client() -> BackendClient:
    """
    Get or create the singleton backend client instance.

    Returns:
        BackendClient instance
    """
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendClient()
    return _backend_client
