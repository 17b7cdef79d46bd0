import hashlib
import logging
import time
from typing import Any, Dict, Optional

from fastapi import HTTPException
from supabase import Client, ClientOptions, create_client

from pinclone.config import Settings
from pinclone.modules.auth.schemas import LoginRequest, SignUpRequest, SignUpResponse, TokenResponse

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_MAX_SIZE = 500

CODE_VERIFIER_SUFFIX = "-code-verifier"


class MemoryAuthStorage:
    """Per-flow auth storage so PKCE verifiers and sessions never land on the shared client."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)

    def code_verifier(self) -> Optional[str]:
        for key, value in self.items.items():
            if key.endswith(CODE_VERIFIER_SUFFIX):
                return value
        return None


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()


def _token_response(auth_response, fallback_email: Optional[str] = None) -> TokenResponse:
    session = auth_response.session
    user = auth_response.user or session.user
    return TokenResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        token_type="bearer",
        expires_in=session.expires_in,
        user_id=user.id,
        email=user.email or fallback_email,
    )


class AuthService:
    def __init__(self, supabase: Client, settings: Settings):
        self.supabase = supabase
        self.settings = settings

    def _flow_client(self, storage: Optional[MemoryAuthStorage] = None) -> Client:
        """Dedicated client for calls that create a session.

        The shared client serves every request; a session saved on it would
        authorise later queries as that user.
        """
        options = ClientOptions(
            storage=storage or MemoryAuthStorage(),
            auto_refresh_token=False,
            persist_session=False,
            flow_type="pkce",
        )
        return create_client(self.settings.supabase_url, self.settings.supabase_key, options=options)

    def sign_up(self, sign_up_data: SignUpRequest) -> SignUpResponse:
        """Register a new user using Supabase Auth"""
        try:
            user_metadata = {}
            if sign_up_data.full_name:
                # Read by the handle_new_user trigger that creates the profiles row
                user_metadata["full_name"] = sign_up_data.full_name

            auth_response = self._flow_client().auth.sign_up({
                "email": sign_up_data.email,
                "password": sign_up_data.password,
                "options": {
                    "email_redirect_to": self.settings.callback_url(),
                    "data": user_metadata,
                },
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail="Failed to register user")

            return SignUpResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or sign_up_data.email,
                # No session yet means the confirmation email is still pending
                message="signed_in" if auth_response.session else "confirmation_pending",
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise HTTPException(status_code=400, detail="User already exists")
            logger.error(f"Sign up failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Registration failed: {error_message}")

    def sign_in_with_password(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self._flow_client().auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password,
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail="Invalid credentials")

            return _token_response(auth_response, login_data.email)
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise HTTPException(status_code=401, detail="Invalid email or password")
            logger.error(f"Login failed: {error_message}")
            raise HTTPException(status_code=500, detail=f"Login failed: {error_message}")

    def oauth_authorization_url(self, provider: str, next_path: Optional[str] = None) -> tuple:
        """Return (provider URL, PKCE code verifier) for an OAuth sign-in."""
        storage = MemoryAuthStorage()
        try:
            response = self._flow_client(storage).auth.sign_in_with_oauth({
                "provider": provider,
                "options": {"redirect_to": self.settings.callback_url(next_path)},
            })
        except Exception as e:
            logger.error(f"OAuth sign-in for provider {provider} failed: {str(e)}")
            raise HTTPException(status_code=400, detail=f"OAuth sign-in failed: {str(e)}")
        return response.url, storage.code_verifier()

    def exchange_code_for_session(self, code: str, code_verifier: Optional[str] = None) -> TokenResponse:
        """Finish the OAuth PKCE flow. Raises ValueError with the provider message on failure."""
        params = {"auth_code": code}
        if code_verifier:
            params["code_verifier"] = code_verifier
        try:
            auth_response = self._flow_client().auth.exchange_code_for_session(params)
        except Exception as e:
            raise ValueError(str(e)) from e
        if not auth_response.session:
            raise ValueError("No session returned for authorization code")
        return _token_response(auth_response)

    def refresh_session(self, refresh_token: str) -> Optional[TokenResponse]:
        """Trade a refresh token for a new session. None when the token is no longer valid."""
        try:
            auth_response = self._flow_client().auth.refresh_session(refresh_token)
        except Exception as e:
            logger.warning("Session refresh failed: %s", e)
            return None
        if not auth_response.session:
            return None
        return _token_response(auth_response)

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            if cache_key in _AUTH_USER_CACHE:
                user_data, expiry = _AUTH_USER_CACHE[cache_key]
                if now < expiry:
                    return user_data
                del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            user = user_response.user
            user_data = {
                "id": user.id,
                "email": user.email,
                "user_metadata": user.user_metadata or {},
                "app_metadata": user.app_metadata or {},
            }
            if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                _AUTH_USER_CACHE[cache_key] = (user_data, now + self.settings.auth_cache_ttl_seconds)
            return user_data
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")

    def sign_out(self, token: str) -> bool:
        """Revoke the session behind this access token"""
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning("Sign out failed: %s", e)
            return False
