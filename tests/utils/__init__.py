"""
Test utilities for the repository toolkit.
"""

import os

def setup_test_environment():
    """Set up the test environment."""
    # Use in-memory SQLite database for tests
    os.environ["ENVIRONMENT"] = "testing"
    os.environ.setdefault("LOG_LEVEL", "INFO")
