"""Pytest configuration for Kwilt MCP tests.

Environment variables are set here, before the application module is
imported, so settings load in the test context.
"""

import os


def pytest_configure(config):
    """Configure test environment before any tests run.

    ENVIRONMENT=test (not development) so that environment-dependent
    behavior such as docs exposure matches a deployed, non-production
    instance.
    """
    config.addinivalue_line("markers", "security: Security-related tests (required gate)")
    config.addinivalue_line("markers", "integration: End-to-end tests through the HTTP endpoint")

    os.environ.setdefault("ENVIRONMENT", "test")
    os.environ.setdefault("AUTO_CREATE_TABLES", "false")
