"""
Pytest configuration for identity_provider. In-memory SQLite and a fixed signing secret so tests
don't touch the filesystem.
"""
import os

# In-memory SQLite; database.py uses StaticPool so all connections share the same DB
os.environ["IDP_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["IDP_SIGNING_SECRET"] = "test-signing-secret-0123456789abcdef"
# Avoid seed_from_env creating unexpected users during tests
os.environ.pop("IDP_SEED_EMAIL", None)
os.environ.pop("IDP_SEED_PASSWORD", None)
