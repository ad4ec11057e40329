"""Test package. Settings are read once at import, so the test environment is fixed here."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-for-unit-tests")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
