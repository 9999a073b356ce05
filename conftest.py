"""
Global pytest configuration for the axiom project.
Pins the testing environment for every test.
"""

import os

import pytest

from utils.config import Config


@pytest.fixture(autouse=True)
def setup_test_environment():
    """Set up test environment for all tests."""
    # Ensure we're in testing mode
    original_env = os.environ.get('AXIOM_ENV')
    os.environ['AXIOM_ENV'] = 'testing'
    Config.reset()

    yield

    # Restore original environment
    if original_env:
        os.environ['AXIOM_ENV'] = original_env
    else:
        os.environ.pop('AXIOM_ENV', None)
    Config.reset()
