"""Pytest configuration for Paranoid Toolkit."""


def pytest_configure(config):
    """Configure pytest with custom settings."""
    # Add custom markers
    config.addinivalue_line(
        "markers", "scenario: end-to-end soft delete scenario test"
    )
