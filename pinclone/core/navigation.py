"""Redirect targets and the query-string message format shared by server and client."""

import re
from typing import Optional
from urllib.parse import urlencode, urlsplit

LOGIN_PATH = "/login"
SIGNUP_PATH = "/signup"
HOME_PATH = "/"

_WHITESPACE = re.compile(r"\s+")


def safe_next_path(next_path: Optional[str], default: str = HOME_PATH) -> str:
    """Accept only same-site relative paths as redirect targets."""
    if not next_path or not next_path.startswith("/") or next_path.startswith("//"):
        return default
    parts = urlsplit(next_path)
    if parts.scheme or parts.netloc or "\\" in next_path:
        return default
    return next_path


def hyphenate(message: str) -> str:
    """Human-readable text in the hyphen-separated form used by error/message query params."""
    return _WHITESPACE.sub("-", message.strip())


def unhyphenate(message: str) -> str:
    return message.replace("-", " ")


def login_url(next_path: Optional[str] = None, error: Optional[str] = None,
              message: Optional[str] = None) -> str:
    params = {}
    if next_path:
        params["next"] = next_path
    if error:
        params["error"] = hyphenate(error)
    if message:
        params["message"] = hyphenate(message)
    return f"{LOGIN_PATH}?{urlencode(params)}" if params else LOGIN_PATH
