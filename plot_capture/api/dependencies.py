"""
Dependency injection for FastAPI.
"""
from typing import Annotated, Optional
from fastapi import Depends

from plot_capture.infrastructure.backend_client import (
    BackendClient,
    get_backend_client,
)
from plot_capture.services.application.persistence_gateway import PersistenceGateway
from plot_capture.services.application.reference_service import ReferenceService
from plot_capture.services.application.validation_client import ValidationClient
from plot_capture.services.domain.drawing_session import DrawingSessionController


# Only one drawing session may exist, so the controller is process-wide.
_session_controller: Optional[DrawingSessionController] = None


def get_session_controller() -> DrawingSessionController:
    """
    Get or create the singleton drawing session controller.

    Returns:
        DrawingSessionController wired to the backend client
    """
    global _session_controller
    if _session_controller is None:
        backend = get_backend_client()
        _session_controller = DrawingSessionController(
            validation_client=ValidationClient(backend),
            gateway=PersistenceGateway(backend),
        )
    return _session_controller


def get_reference_service(
    backend: Annotated[BackendClient, Depends(get_backend_client)],
) -> ReferenceService:
    """
    Dependency factory for ReferenceService.

    Args:
        backend: Backend client (injected)

    Returns:
        ReferenceService instance
    """
    return ReferenceService(backend=backend)


# Type aliases for cleaner route signatures
SessionControllerDep = Annotated[DrawingSessionController, Depends(get_session_controller)]
ReferenceServiceDep = Annotated[ReferenceService, Depends(get_reference_service)]
