"""Pytest configuration and fixtures."""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from broker import OperatorBroker
from controllers.base import Controller
from controllers.registry import ControllerCatalog, reset_catalog
from log import BrokerLogger


class RecordingController(Controller):
    """Controller that records every lifecycle call into a shared list."""

    def __init__(self, broker, label="ctrl", calls=None, fail_on=None):
        super().__init__(broker)
        self.label = label
        self.calls = calls if calls is not None else []
        self.fail_on = fail_on or set()

    @property
    def name(self) -> str:
        return self.label

    async def _record(self, phase):
        self.calls.append((self.label, phase))
        if phase in self.fail_on:
            raise RuntimeError(f"{self.label} {phase} failed")

    async def init(self):
        await self._record("init")

    async def start(self):
        await self._record("start")

    async def stop(self):
        await self._record("stop")


@pytest.fixture(autouse=True)
def clean_catalog():
    """Reset the global controller catalog around every test."""
    reset_catalog()
    yield
    reset_catalog()


@pytest.fixture
def mock_client():
    """Create a mock cluster client."""
    client = MagicMock()
    client.close = AsyncMock()
    return client


@pytest.fixture
def client_factory(mock_client):
    """Async client factory returning the mock client."""
    return AsyncMock(return_value=mock_client)


@pytest.fixture
def catalog():
    return ControllerCatalog()


@pytest.fixture
def broker(client_factory, catalog):
    """Broker wired to the mock client factory and a private catalog."""
    return OperatorBroker(
        "test-operator",
        logger_factory=lambda name: BrokerLogger(logging.getLogger(name)),
        client_factory=client_factory,
        catalog=catalog,
    )


@pytest.fixture
def calls():
    """Shared call-order log for RecordingController instances."""
    return []
