from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pinclone.config import Settings
from pinclone.core.cookies import clear_session_cookies, set_session_cookies
from pinclone.core.dependencies import get_access_token, get_auth_service, get_optional_user, get_settings
from pinclone.core.navigation import login_url, safe_next_path
from pinclone.modules.auth.schemas import (
    LoginRequest, SignUpRequest, SignUpResponse, TokenResponse, SessionResponse, SessionUser
)
from pinclone.modules.auth.service import AuthService
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

# Mounted without the API prefix: providers redirect the browser here
callback_router = APIRouter(tags=["auth"])

CODE_VERIFIER_COOKIE = "sb-code-verifier"
CODE_VERIFIER_MAX_AGE = 600
OAUTH_CALLBACK_FAILED = "OAuth-Callback-Failed"


@router.post("/signup", response_model=SignUpResponse, status_code=201)
async def sign_up(
    sign_up_data: SignUpRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Register a new user; message is confirmation_pending until the email link is used"""
    return service.sign_up(sign_up_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Login, set the session cookies and return the tokens"""
    tokens = service.sign_in_with_password(login_data)
    response = JSONResponse(content=tokens.model_dump())
    set_session_cookies(response, settings, tokens.access_token, tokens.refresh_token, tokens.expires_in)
    return response


@router.post("/logout", status_code=200)
async def logout(
    token: Optional[str] = Depends(get_access_token),
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Revoke the session and clear the cookies"""
    if token:
        service.sign_out(token)
    response = JSONResponse(content={"message": "Logged out successfully"})
    clear_session_cookies(response, settings)
    return response


@router.get("/session", response_model=SessionResponse)
async def get_session(user_data: Optional[Dict] = Depends(get_optional_user)):
    """Current user, or null when signed out"""
    if not user_data:
        return SessionResponse(user=None)
    return SessionResponse(user=SessionUser(**user_data))


@router.get("/oauth/{provider}")
async def oauth_sign_in(
    provider: str,
    next: Optional[str] = None,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Send the browser to the provider; `next` is carried through the callback URL"""
    next_path = safe_next_path(next) if next else None
    url, code_verifier = service.oauth_authorization_url(provider, next_path)
    response = RedirectResponse(url, status_code=302)
    if code_verifier:
        response.set_cookie(
            CODE_VERIFIER_COOKIE, code_verifier, max_age=CODE_VERIFIER_MAX_AGE,
            httponly=True, samesite="lax", secure=settings.cookie_secure, path="/",
        )
    return response


@callback_router.get("/auth/callback")
async def oauth_callback(
    request: Request,
    code: Optional[str] = None,
    next: Optional[str] = None,
    service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Exchange the authorization code for a session and continue to `next`"""
    if not code:
        logger.error("OAuth callback error: No code found in callback.")
        return RedirectResponse(
            login_url(error=OAUTH_CALLBACK_FAILED, message="No auth code provided"), status_code=302
        )

    try:
        tokens = service.exchange_code_for_session(code, request.cookies.get(CODE_VERIFIER_COOKIE))
    except ValueError as e:
        logger.error(f"OAuth callback error during code exchange: {str(e)}")
        response = RedirectResponse(login_url(error=OAUTH_CALLBACK_FAILED, message=str(e)), status_code=302)
        response.delete_cookie(CODE_VERIFIER_COOKIE, path="/")
        return response

    response = RedirectResponse(safe_next_path(next), status_code=302)
    set_session_cookies(response, settings, tokens.access_token, tokens.refresh_token, tokens.expires_in)
    response.delete_cookie(CODE_VERIFIER_COOKIE, path="/")
    return response
