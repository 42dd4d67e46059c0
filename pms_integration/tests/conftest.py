"""
Pytest configuration for PMS integration tests
"""

from .fixtures import *  # noqa: F401, F403


# Markers for different test types
def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line("markers", "webhook: inbound vendor webhook tests")
    config.addinivalue_line("markers", "slow: mark test as slow running")
