"""
Session bootstrap.

Validates the network and credentials of a SessionConfig and opens a signed
web3 session bound to the gate contract.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from eth_account import Account
from web3 import AsyncWeb3
from web3.middleware import ExtraDataToPOAMiddleware, SignAndSendRawMiddlewareBuilder

from d2_event_listener import (
    ChainIdMismatchError,
    MissingCredentialError,
    UnknownNetworkError,
)
from d2_event_listener.config import (
    IDEA_NFT_CONFIG,
    POA_NETWORKS,
    UNKNOWN_CHAIN_ID,
    get_chain_id,
    get_rpc_url_by_network,
)

from .binding import ContractBinding, Web3ContractBinding
from .models import BoundSession, SessionConfig, mask_secret

logger = logging.getLogger(__name__)


# Builds the contract binding from (w3, address, abi); overridable for tests
BindingFactory = Callable[[Any, str, list], ContractBinding]


class SessionBootstrap:
    """
    Opens BoundSessions.

    Usage:
        bootstrap = SessionBootstrap(rpc_overrides=settings.rpc_urls)
        session = await bootstrap.bootstrap(
            SessionConfig(network="polygon", private_key=key)
        )
    """

    def __init__(
        self,
        contract_address: str = IDEA_NFT_CONFIG["gate_contract_address"],
        contract_abi: Optional[list] = None,
        rpc_overrides: Optional[dict[str, str]] = None,
        poll_interval: float = 2.0,
        max_block_range: int = 1000,
        verify_chain_id: bool = False,
        web3_factory: Optional[Callable[[str], Any]] = None,
        binding_factory: Optional[BindingFactory] = None,
    ) -> None:
        """
        Args:
            contract_address: Gate contract address
            contract_abi: Gate contract ABI (defaults to the bundled ABI)
            rpc_overrides: Per-network RPC URL overrides
            poll_interval: Listener poll interval passed to the binding
            max_block_range: Largest eth_getLogs block span the binding requests
            verify_chain_id: Compare the endpoint's chain id with the table
            web3_factory: Builds an AsyncWeb3 for an RPC URL
            binding_factory: Builds the contract binding
        """
        self._contract_address = contract_address
        self._contract_abi = contract_abi or IDEA_NFT_CONFIG["gate_abi"]
        self._rpc_overrides = rpc_overrides or {}
        self._poll_interval = poll_interval
        self._max_block_range = max_block_range
        self._verify_chain_id = verify_chain_id
        self._web3_factory = web3_factory or self._default_web3
        self._binding_factory = binding_factory or self._default_binding

    async def bootstrap(self, config: SessionConfig) -> BoundSession:
        """
        Validate ``config`` and open a session.

        Raises:
            UnknownNetworkError: Network not supported
            MissingCredentialError: Private key missing
            ChainIdMismatchError: Endpoint is on another chain (verify mode)
        """
        network = config.network
        chain_id = get_chain_id(network)
        if chain_id == UNKNOWN_CHAIN_ID:
            raise UnknownNetworkError(f"Invalid network: {network}")
        if not config.private_key:
            raise MissingCredentialError("Private key is not defined")

        rpc_url = get_rpc_url_by_network(network, self._rpc_overrides)

        account = Account.from_key(config.private_key)
        logger.info(f"Private key detected ({mask_secret(config.private_key)})")
        logger.info(f"Address: {account.address}")

        w3 = self._web3_factory(rpc_url)
        if network in POA_NETWORKS:
            w3.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
        w3.middleware_onion.inject(
            SignAndSendRawMiddlewareBuilder.build(account), layer=0
        )
        w3.eth.default_account = account.address

        if self._verify_chain_id:
            actual = await w3.eth.chain_id
            if actual != chain_id:
                raise ChainIdMismatchError(network, chain_id, actual)

        contract = self._binding_factory(w3, self._contract_address, self._contract_abi)

        return BoundSession(
            network=network,
            rpc_url=rpc_url,
            chain_id=chain_id,
            signer_address=account.address,
            contract=contract,
        )

    @staticmethod
    def _default_web3(rpc_url: str) -> Any:
        return AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(rpc_url))

    def _default_binding(self, w3: Any, address: str, abi: list) -> ContractBinding:
        contract = w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(address), abi=abi
        )
        return Web3ContractBinding(
            w3,
            contract,
            poll_interval=self._poll_interval,
            max_block_range=self._max_block_range,
        )
