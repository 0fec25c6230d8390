"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real database or reuse a real signing secret
os.environ.setdefault("AUTH_SECRET", "test-secret")
os.environ.setdefault("PASSWORD_HASH_ITERATIONS", "1000")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
