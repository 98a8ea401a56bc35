"""
Shared API key authentication and authorization helpers for Briefly services.

Each service defines its own API_KEY_CONFIGS and get_settings function and
passes them to these helpers.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import Request

from services.common.http_errors import AuthError, ErrorCode
from services.common.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class APIKeyConfig:
    client: str
    service: str
    permissions: List[str]
    settings_key: str  # The key name in settings to look up the actual API key value


def build_api_key_mapping(
    api_key_configs: Dict[str, APIKeyConfig], get_settings: Callable[[], Any]
) -> Dict[str, APIKeyConfig]:
    """
    Build a mapping from actual API key values to their configurations.
    """
    settings = get_settings()
    api_key_mapping = {}
    for config in api_key_configs.values():
        actual_key_value = getattr(settings, config.settings_key, None)
        if actual_key_value:
            api_key_mapping[actual_key_value] = config
        else:
            logger.warning(f"API key not found in settings: {config.settings_key}")
    return api_key_mapping


def get_api_key_from_request(request: Request) -> Optional[str]:
    """
    Extract API key from request headers (supports X-API-Key and Authorization: Bearer).
    """
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key
    authorization = request.headers.get("Authorization")
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:]
    return None


def make_service_permission_required(
    required_permissions: List[str],
    api_key_configs: Dict[str, APIKeyConfig],
    get_settings: Callable[[], Any],
) -> Callable[[Request], Awaitable[str]]:
    """
    Build a FastAPI dependency that authenticates the caller's API key and
    checks it grants every permission in ``required_permissions``.

    The dependency returns the authenticated client name.
    """

    async def dependency(request: Request) -> str:
        api_key = get_api_key_from_request(request)
        if not api_key:
            logger.warning("Missing API key in request headers")
            raise AuthError(message="API key required", status_code=401)

        key_config = build_api_key_mapping(api_key_configs, get_settings).get(api_key)
        if key_config is None:
            logger.warning(f"Invalid API key: {api_key[:8]}...")
            raise AuthError(message="Invalid API key", status_code=403)

        missing = [p for p in required_permissions if p not in key_config.permissions]
        if missing:
            logger.warning(
                "Permission denied",
                client=key_config.client,
                required_permissions=required_permissions,
            )
            raise AuthError(
                message=f"Insufficient permissions. Required: {required_permissions}",
                code=ErrorCode.ACCESS_DENIED,
                status_code=403,
            )

        request.state.client_name = key_config.client
        return key_config.client

    return dependency
