"""Python client for the CareCircle REST API."""
from app.client.api_client import (
    ApiClient,
    ApiClientConfig,
    ApiResponse,
    DeliveryFailure,
    EmergencyApiResponse,
    TokenProvider,
)

__all__ = [
    "ApiClient",
    "ApiClientConfig",
    "ApiResponse",
    "DeliveryFailure",
    "EmergencyApiResponse",
    "TokenProvider",
]
