"""
Pytest configuration for resource_server. Same signing secret the identity provider tests use.
"""
import os

os.environ["IDP_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["IDP_SIGNING_SECRET"] = "test-signing-secret-0123456789abcdef"
os.environ.pop("IDP_SEED_EMAIL", None)
os.environ.pop("IDP_SEED_PASSWORD", None)
