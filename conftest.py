"""
Shared test fixtures.

Provides a fake contract binding so no test ever talks to a real RPC node,
plus recording handlers for dispatch tests.
"""
import asyncio
from unittest.mock import MagicMock

import pytest

from d2_event_listener.core.binding import EventSubscription
from d2_event_listener.core.models import TestDirective


# Test modules import TestDirective; keep pytest from collecting it
TestDirective.__test__ = False


# A well-known throwaway key (eth-account documentation example)
TEST_PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


class FakeBinding:
    """
    In-memory ContractBinding.

    ``fire()`` plays the role of the node delivering a log: it awaits every
    callback registered for the event with the given args.
    """

    def __init__(self, filter_names=(), address="0x99aEA5533c117aa39904B66Ceec69435EC9109C8", calls=None):
        self.address = address
        self._filter_names = list(filter_names)
        self.listeners = {}
        self.subscriptions = []
        self.calls = dict(calls or {})
        self.call_log = []

    def filter_names(self):
        return list(self._filter_names)

    def on(self, event_name, callback):
        self.listeners.setdefault(event_name, []).append(callback)
        subscription = EventSubscription(event_name)
        self.subscriptions.append(subscription)
        return subscription

    async def call(self, function_name, *args):
        self.call_log.append((function_name, args))
        value = self.calls[function_name]
        if isinstance(value, Exception):
            raise value
        return value(*args) if callable(value) else value

    async def fire(self, event_name, *args):
        for callback in self.listeners.get(event_name, []):
            await callback(*args)


class RecordingHandler:
    """Async handler that records payloads and returns/raises on demand."""

    def __init__(self, name, result=None, error=None, delay=0.0):
        self.name = name
        self.calls = []
        self.result = result
        self.error = error
        self.delay = delay

    async def __call__(self, payload):
        self.calls.append(payload)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def test_private_key():
    return TEST_PRIVATE_KEY


@pytest.fixture
def make_binding():
    """Factory for FakeBinding instances."""
    return FakeBinding


@pytest.fixture
def make_handler():
    """Factory for RecordingHandler instances."""
    return RecordingHandler


@pytest.fixture
def mock_web3():
    """AsyncWeb3 stand-in; middleware injection is a no-op."""
    w3 = MagicMock()
    w3.middleware_onion = MagicMock()
    return w3
