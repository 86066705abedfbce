"""
Tests for ContractWatcher and event-name derivation.
"""
import logging
from types import SimpleNamespace

import pytest

from d2_event_listener.core import (
    BoundSession,
    ContractWatcher,
    EventTag,
    NewIdeaNFTPayload,
    derive_listenable_events,
)
from d2_event_listener.core.contract_watcher import extract_block_number


def make_session(binding, network="polygon"):
    return BoundSession(
        network=network,
        rpc_url="https://polygon-rpc.com",
        chain_id=137,
        signer_address="0x2c7536E3605D9C16a7a3D7b1898e529396a65c23",
        contract=binding,
    )


class TestDeriveListenableEvents:
    """Filter keys -> distinct event names."""

    def test_strips_signatures_dedupes_and_drops_initialized(self):
        names = ["Foo(uint256)", "Foo(uint256,address)", "Initialized(uint8)", "Bar()"]

        assert derive_listenable_events(names) == {"Foo", "Bar"}

    def test_bare_and_signature_keys_collapse(self):
        names = ["IdeaCreated", "IdeaCreated(address,uint256)", "Initialized"]

        assert derive_listenable_events(names) == {"IdeaCreated"}

    def test_empty_result_is_reported_not_fatal(self, caplog):
        with caplog.at_level(logging.WARNING):
            events = derive_listenable_events(["Initialized(uint8)"])

        assert events == set()
        assert "No events found" in caplog.text


class TestExtractBlockNumber:
    def test_reads_mapping(self):
        assert extract_block_number({"blockNumber": 100}) == 100

    def test_reads_attribute(self):
        assert extract_block_number(SimpleNamespace(blockNumber=7)) == 7


class TestAttach:
    """Native listeners are attached and translated to bus publications."""

    @pytest.mark.asyncio
    async def test_attaches_one_listener_per_event(self, bus, dispatcher, make_binding):
        binding = make_binding(["IdeaCreated(address)", "Initialized(uint8)", "Bar()"])
        watcher = ContractWatcher(bus, dispatcher)

        handle = watcher.attach(make_session(binding))

        assert handle.events == {"IdeaCreated", "Bar"}
        assert sorted(binding.listeners) == ["Bar", "IdeaCreated"]
        assert len(handle.subscriptions) == 2
        assert handle.is_active is True
        await bus.close()

    @pytest.mark.asyncio
    async def test_idea_created_publishes_new_idea_nft(
        self, bus, dispatcher, idea_binding, idea_handler
    ):
        watcher = ContractWatcher(bus, dispatcher)
        watcher.attach(make_session(idea_binding))

        await idea_binding.fire(
            "IdeaCreated", "0xcreator", 7, "ref", 1, 2, 3, {"blockNumber": 100}
        )
        await bus.join()

        assert len(idea_handler.calls) == 1
        payload = idea_handler.calls[0]
        assert isinstance(payload, NewIdeaNFTPayload)
        assert payload.block_number == 100
        assert payload.network == "polygon"
        assert payload.rpc_url == "https://polygon-rpc.com"
        assert payload.contract is idea_binding
        await bus.close()

    @pytest.mark.asyncio
    async def test_other_events_are_not_published(
        self, bus, dispatcher, make_binding, idea_handler
    ):
        binding = make_binding(["IdeaCreated()", "Bar()"])
        watcher = ContractWatcher(bus, dispatcher)
        watcher.attach(make_session(binding))

        await binding.fire("Bar", {"blockNumber": 5})
        await bus.join()

        assert bus.published_count == 0
        assert idea_handler.calls == []
        await bus.close()

    @pytest.mark.asyncio
    async def test_attach_twice_registers_dispatcher_once(
        self, bus, dispatcher, make_binding, idea_handler
    ):
        watcher = ContractWatcher(bus, dispatcher)
        first = make_binding(["IdeaCreated()"])
        second = make_binding(["IdeaCreated()"])

        watcher.attach(make_session(first))
        watcher.attach(make_session(second))

        assert dispatcher.is_registered is True

        await second.fire("IdeaCreated", {"blockNumber": 9})
        await bus.join()

        assert [p.block_number for p in idea_handler.calls] == [9]
        await bus.close()

    @pytest.mark.asyncio
    async def test_detach_cancels_all_listeners(self, bus, dispatcher, idea_binding):
        watcher = ContractWatcher(bus, dispatcher)
        handle = watcher.attach(make_session(idea_binding))

        handle.detach()

        assert handle.is_active is False
        assert all(not s.is_active for s in idea_binding.subscriptions)
        await bus.close()

    @pytest.mark.asyncio
    async def test_failed_attach_cancels_already_attached(
        self, bus, dispatcher, make_binding
    ):
        binding = make_binding(["Alpha()", "Beta()"])
        original_on = binding.on

        def flaky_on(event_name, callback):
            if event_name == "Beta":
                raise RuntimeError("rpc refused filter")
            return original_on(event_name, callback)

        binding.on = flaky_on
        watcher = ContractWatcher(bus, dispatcher)

        with pytest.raises(RuntimeError):
            watcher.attach(make_session(binding))

        assert len(binding.subscriptions) == 1
        assert binding.subscriptions[0].is_active is False
        await bus.close()


class TestPublishIdeaCreated:
    @pytest.mark.asyncio
    async def test_builds_payload_from_session(self, bus, dispatcher, idea_binding):
        watcher = ContractWatcher(bus, dispatcher)

        envelope = watcher.publish_idea_created(make_session(idea_binding), 42)

        assert envelope.tag == EventTag.NEW_IDEA_NFT
        assert envelope.payload.block_number == 42
        assert envelope.reply is None
