"""
Shared fixtures for Auth service tests.
"""

import pytest

from shared.metrics import MetricsCollector
from shared.test_helpers import StubFacebookGraph, TestFacebookUser, create_test_config


@pytest.fixture
def facebook_user():
    """Graph user behind the default test access token."""
    return TestFacebookUser(id="123", name="A B", email="a@b.com")


@pytest.fixture
def stub_graph(facebook_user):
    """Stub Graph API with code ABC exchanging for access token T1."""
    stub = StubFacebookGraph()
    stub.issue_code("ABC", "T1", facebook_user)
    return stub


@pytest.fixture
def config():
    """Complete auth configuration."""
    return create_test_config()


@pytest.fixture
def metrics():
    """Isolated metrics collector."""
    return MetricsCollector("auth")
