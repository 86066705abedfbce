"""
Contract binding over web3.py.

Gives the watcher the three capabilities it needs from a bound contract:
    - filter_names(): enumerate event filter keys (bare name and signature)
    - on(): run a native listener for a named event
    - call(): read a view function

Native listeners poll eth_getLogs over new block ranges. The first poll only
records the current head so history is never replayed. Ranges are requested
in chunks of at most max_block_range blocks, and progress is kept per chunk,
so a lagging listener catches up instead of retrying one oversized range.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

from eth_utils.abi import collapse_if_tuple

logger = logging.getLogger(__name__)


EventCallback = Callable[..., Awaitable[None]]


class EventSubscription:
    """Handle for a running native listener."""

    def __init__(self, event_name: str, task: Optional[asyncio.Task] = None) -> None:
        self.event_name = event_name
        self._task = task
        self._cancelled = False

    @property
    def is_active(self) -> bool:
        if self._cancelled:
            return False
        return self._task is None or not self._task.done()

    def cancel(self) -> None:
        """Stop the listener. Safe to call more than once."""
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)


class ContractBinding(Protocol):
    """Capabilities the watcher and handlers need from a bound contract."""

    address: str

    def filter_names(self) -> list[str]:
        ...

    def on(self, event_name: str, callback: EventCallback) -> EventSubscription:
        ...

    async def call(self, function_name: str, *args: Any) -> Any:
        ...


def event_signature(abi_entry: dict) -> str:
    """Canonical signature of an ABI event, e.g. ``Initialized(uint8)``."""
    types = ",".join(collapse_if_tuple(i) for i in abi_entry.get("inputs", []))
    return f"{abi_entry['name']}({types})"


class Web3ContractBinding:
    """
    ContractBinding backed by an AsyncWeb3 contract.

    Usage:
        w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))
        contract = w3.eth.contract(address=address, abi=abi)
        binding = Web3ContractBinding(w3, contract, poll_interval=2.0)

        sub = binding.on("IdeaCreated", on_idea_created)
        ...
        sub.cancel()
    """

    def __init__(
        self,
        w3: Any,
        contract: Any,
        poll_interval: float = 2.0,
        max_block_range: int = 1000,
    ) -> None:
        """
        Args:
            w3: AsyncWeb3 instance
            contract: AsyncContract bound to ``w3``
            poll_interval: Seconds between eth_getLogs polls
            max_block_range: Largest block span of a single eth_getLogs call
        """
        if max_block_range < 1:
            raise ValueError("max_block_range must be at least 1")
        self._w3 = w3
        self._contract = contract
        self._poll_interval = poll_interval
        self._max_block_range = max_block_range
        self.address: str = contract.address

    @property
    def contract(self) -> Any:
        return self._contract

    def filter_names(self) -> list[str]:
        """
        Event filter keys, mirroring ethers' ``contract.filters``.

        Each event contributes its bare name and its full signature, so
        overloaded events show up once per signature.
        """
        names: list[str] = []
        for entry in self._contract.abi:
            if entry.get("type") != "event":
                continue
            if entry["name"] not in names:
                names.append(entry["name"])
            names.append(event_signature(entry))
        return names

    def on(self, event_name: str, callback: EventCallback) -> EventSubscription:
        """
        Start a native listener for ``event_name``.

        The callback is awaited with the decoded event args in ABI order
        followed by the raw log (which carries ``blockNumber``).
        """
        subscription = EventSubscription(event_name)
        subscription._task = asyncio.get_running_loop().create_task(
            self._poll(event_name, callback),
            name=f"listen_{event_name}",
        )
        return subscription

    async def call(self, function_name: str, *args: Any) -> Any:
        return await self._contract.functions[function_name](*args).call()

    async def _poll(self, event_name: str, callback: EventCallback) -> None:
        event = self._contract.events[event_name]()
        next_block: Optional[int] = None

        while True:
            try:
                head = await self._w3.eth.block_number

                if next_block is None:
                    next_block = head + 1
                else:
                    while next_block <= head:
                        to_block = min(next_block + self._max_block_range - 1, head)
                        logs = await event.get_logs(from_block=next_block, to_block=to_block)
                        next_block = to_block + 1
                        for log in logs:
                            await self._deliver(event_name, callback, log)

            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Polling {event_name} from block {next_block} failed: {e}")

            await asyncio.sleep(self._poll_interval)

    async def _deliver(self, event_name: str, callback: EventCallback, log: Any) -> None:
        args = list(log["args"].values())
        try:
            await callback(*args, log)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(
                f"{event_name} listener failed at block {log.get('blockNumber')}: {e}"
            )
