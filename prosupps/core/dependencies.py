"""
Core dependencies for route protection and session lookup
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials
from prosupps.core.context import SessionContext, SessionRegistry, get_session_registry
from prosupps.core.errors import BackendError
from prosupps.database.backend import Backend, get_backend
from prosupps.database.supabase_client import security
from prosupps.modules.auth.service import AuthService
from prosupps.modules.profile.schemas import ProfileResponse
from prosupps.modules.profile.service import ProfileService
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

REDIRECT_HEADER = "X-Redirect"


def _redirect(status_code: int, detail: str, location: str) -> HTTPException:
    """Authorization failures carry the page to send the user to instead of a banner."""
    return HTTPException(status_code=status_code, detail=detail, headers={REDIRECT_HEADER: location})


def get_auth_service(backend: Backend = Depends(get_backend)) -> AuthService:
    return AuthService(backend)


def get_profile_service(backend: Backend = Depends(get_backend)) -> ProfileService:
    return ProfileService(backend)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None:
        raise _redirect(status.HTTP_401_UNAUTHORIZED, "Not authenticated", "/login")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Dict:
    """Extract current user info from JWT token"""
    try:
        return auth_service.get_current_user(token)
    except HTTPException as e:
        raise _redirect(e.status_code, e.detail, "/login")


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Dict]:
    """Current user when a valid token is present; anonymous visitors get None"""
    if credentials is None:
        return None
    try:
        return auth_service.get_current_user(credentials.credentials)
    except (HTTPException, BackendError) as e:
        logger.debug(f"Ignoring unusable token on public route: {e}")
        return None


def get_current_profile(
    user_data: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
) -> ProfileResponse:
    """Profile row of the signed-in user; missing rows send the user back to login"""
    profile = service.get_profile(user_data["id"])
    if profile is None:
        raise _redirect(status.HTTP_401_UNAUTHORIZED, "Profile not found", "/login")
    return profile


def require_role(required_role: str):
    """Factory function to create role check dependency"""
    def check_role(profile: ProfileResponse = Depends(get_current_profile)) -> ProfileResponse:
        if profile.role != required_role:
            raise _redirect(status.HTTP_403_FORBIDDEN, f"Insufficient role. Required: {required_role}", "/")
        return profile
    return check_role


def get_session_context(
    token: str = Depends(get_current_token),
    user_data: Dict = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry)
) -> SessionContext:
    return registry.get_or_create(token, user_data)
