"""
API key authentication and authorization for the Scheduling Service.
"""

from typing import Dict, List

from services.common.api_key_auth import APIKeyConfig, make_service_permission_required
from services.scheduling.settings import get_settings

# API Key configurations mapped by settings key names
API_KEY_CONFIGS: Dict[str, APIKeyConfig] = {
    # Frontend (Next.js API) key - read-only scheduling intelligence
    "api_frontend_scheduling_key": APIKeyConfig(
        client="frontend",
        service="scheduling-service-access",
        permissions=["read_calendar", "health"],
        settings_key="api_frontend_scheduling_key",
    ),
}


def service_permission_required(required_permissions: List[str]):
    """FastAPI dependency factory requiring an API key with the given permissions."""
    return make_service_permission_required(
        required_permissions, API_KEY_CONFIGS, get_settings
    )
