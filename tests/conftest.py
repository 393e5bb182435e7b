"""
Shared test fixtures and configuration.

Environment variables are set BEFORE any app imports so the settings
singleton never reads a developer's .env file.
"""

import os
import sys

# Ensure the package is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Override settings before any app code imports the settings singleton
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests"
os.environ["ALGORITHM"] = "HS256"
os.environ["GITLAB_URL"] = "https://gitlab.test.com"
os.environ["GITLAB_CLIENT_ID"] = "test-client-id"
os.environ["GITLAB_CLIENT_SECRET"] = "test-client-secret"

import pytest  # noqa: E402

from tests.mocks.gitlab import make_config, make_user  # noqa: E402


@pytest.fixture
def config():
    """Default remote configuration without group gating."""
    return make_config()


@pytest.fixture
def gated_config():
    """Remote configuration that only admits members of the "acme" group."""
    return make_config(allowed_orgs=["acme"])


@pytest.fixture
def user():
    return make_user()
