"""
Core dependencies for route protection
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pinclone.config import Settings, settings as default_settings
from pinclone.database.supabase_client import close_supabase, create_user_supabase, get_supabase
from pinclone.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", default_settings)


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(supabase, settings)


def get_access_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    """Bearer token from the Authorization header, else the (possibly just refreshed) session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    refreshed = getattr(request.state, "access_token", None)
    if refreshed:
        return refreshed
    return request.cookies.get(settings.session_access_cookie)


def _resolve_user(request: Request, token: Optional[str], auth_service: AuthService) -> Dict[str, Any]:
    # The session middleware has already validated the cookie token
    cookie_user = getattr(request.state, "user", None)
    if cookie_user is not None and token == getattr(request.state, "access_token", None):
        return cookie_user
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User must be authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth_service.get_current_user(token)


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Dict[str, Any]:
    """Extract current user info from the session token; 401 without one"""
    return _resolve_user(request, token, auth_service)


def get_optional_user(
    request: Request,
    token: Optional[str] = Depends(get_access_token),
    auth_service: AuthService = Depends(get_auth_service),
) -> Optional[Dict[str, Any]]:
    """Current user when the request carries a valid session, else None"""
    try:
        return _resolve_user(request, token, auth_service)
    except HTTPException:
        return None


def get_user_supabase(
    user_data: Dict[str, Any] = Depends(get_current_user),
    token: Optional[str] = Depends(get_access_token),
    settings: Settings = Depends(get_settings),
):
    """Store client acting as the caller, for writes checked by row-level security"""
    client = create_user_supabase(settings, token)
    try:
        yield client
    finally:
        close_supabase(client)
