"""Test configuration for pytest."""

import logging
import os

import pytest


@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests to be minimal."""
    os.environ['SNAPSIFT_LOG_LEVEL'] = 'WARNING'

    logging.getLogger().setLevel(logging.WARNING)

    # Expected failures are logged loudly by these modules
    for logger_name in ['snapsift.pipeline', 'snapsift.store.json_store', 'snapsift.dedup.hash']:
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)
