"""
Resource server configuration. Must match the identity provider's issuer, audience and secret.
"""
import os

ISSUER = os.environ.get("IDP_ISSUER", "http://localhost:5000").rstrip("/")

# Audience this API accepts; access tokens must carry it in aud
API_AUDIENCE = os.environ.get("IDP_API_AUDIENCE", "http://localhost:7000")

# Shared HS256 secret; falls back to the file the identity provider writes
SIGNING_SECRET = os.environ.get("IDP_SIGNING_SECRET", "").strip() or None
SIGNING_SECRET_PATH = os.environ.get("IDP_SIGNING_SECRET_PATH", ".idp_signing_secret")
