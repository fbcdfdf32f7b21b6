"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for tests, settings are created on import
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("HYPERSYNC_URL_TEMPLATE", "https://{network}.hypersync.test")
os.environ.setdefault("RPC_URLS", '{"op-mainnet": "https://op-mainnet.rpc.test"}')

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest
from unittest.mock import AsyncMock, MagicMock


@pytest.fixture
def mock_log():
    """Stand-in for the loguru logger passed to allocators."""
    log = MagicMock()
    log.info = MagicMock()
    log.warning = MagicMock()
    log.debug = MagicMock()
    return log


@pytest.fixture
def mock_redis_client():
    """Mock Redis client for caching tests."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock()
    return client


@pytest.fixture
def sample_wallet_address():
    """Sample valid wallet address for testing."""
    return "0x742d35cc6634c0532925a3b844bc9e7595f0beb0"
