"""
Core layer test fixtures.

Core tests verify dispatch and orchestration, so the contract binding and
web3 are replaced with in-memory fakes and handlers with recorders.
"""
import pytest

from d2_event_listener.core import (
    Dispatcher,
    EventBus,
    EventListener,
    SessionBootstrap,
)


IDEA_FILTERS = [
    "IdeaCreated",
    "IdeaCreated(address,uint256,string,uint256,uint256,uint256)",
    "Initialized",
    "Initialized(uint8)",
]


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def idea_handler(make_handler):
    return make_handler("new_idea_nft", result={"minted": True})


@pytest.fixture
def notification_handler(make_handler):
    return make_handler("notification")


@pytest.fixture
def order_store_handler(make_handler):
    return make_handler("order_store")


@pytest.fixture
def dispatcher(idea_handler, notification_handler, order_store_handler):
    return Dispatcher.from_handlers(
        new_idea_nft=idea_handler,
        notification=notification_handler,
        order_store=order_store_handler,
    )


@pytest.fixture
def idea_binding(make_binding):
    """Binding exposing the gate contract's event filters."""
    return make_binding(IDEA_FILTERS)


@pytest.fixture
def bootstrap(mock_web3, idea_binding):
    """SessionBootstrap whose sessions all use ``idea_binding``."""
    return SessionBootstrap(
        web3_factory=lambda rpc_url: mock_web3,
        binding_factory=lambda w3, address, abi: idea_binding,
    )


@pytest.fixture
def listener(dispatcher, bootstrap, bus):
    return EventListener(
        dispatcher=dispatcher,
        bootstrap=bootstrap,
        bus=bus,
        test_settle_delay=0.0,
        test_timeout=5.0,
    )
