"""
Session client configuration. Defaults for a local identity provider; override via env.
No secrets in this file; credentials are supplied by the user at login.
"""
import os

# Identity provider base path (login, register, refresh, logout, password reset)
AUTH_API_BASE_URL = os.environ.get("AUTH_API_BASE_URL", "http://localhost:5000/api/auth").rstrip("/")

# Hard timeout for every outbound call (seconds)
REQUEST_TIMEOUT = float(os.environ.get("AUTH_REQUEST_TIMEOUT", "30"))

# Subtracted from the advertised access token lifetime so renewal happens before server-side expiry
EXPIRY_SKEW_SECONDS = int(os.environ.get("AUTH_EXPIRY_SKEW_SECONDS", "60"))

# Key under which the refresh token is persisted
REFRESH_TOKEN_KEY = os.environ.get("AUTH_REFRESH_TOKEN_KEY", "x_refresh_token")

# Cookie mode: provider keeps the refresh credential in a cookie; nothing is persisted client-side
COOKIE_REFRESH = os.environ.get("AUTH_COOKIE_REFRESH", "").strip().lower() in ("1", "true", "yes")

# Optional JSON file for the persisted refresh token; unset = in-memory only
TOKEN_STORE_PATH = os.environ.get("AUTH_TOKEN_STORE_PATH", "").strip() or None

# Input bounds checked before any network call
EMAIL_MAX_LENGTH = 254
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
