from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List
from urllib.parse import urlencode


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_key: str = ""

    # Storage buckets
    pins_bucket: str = "pins"
    avatars_bucket: str = "avatars"

    # Session cookies
    session_access_cookie: str = "sb-access-token"
    session_refresh_cookie: str = "sb-refresh-token"
    cookie_secure: bool = True
    auth_cache_ttl_seconds: int = 60

    # Feeds
    default_page_size: int = 20
    max_page_size: int = 100
    search_users_limit: int = 10

    # App
    app_name: str = "pinclone-backend"
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    site_url: str = "http://localhost:3000"  # public origin used in OAuth/email redirect links
    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def callback_url(self, next_path: Optional[str] = None) -> str:
        url = f"{self.site_url.rstrip('/')}/auth/callback"
        if next_path:
            url = f"{url}?{urlencode({'next': next_path})}"
        return url

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
