"""
Configuration for the D2 event listener.

Loads runtime settings from environment variables (prefix ``D2_``) and an
optional ``.env`` file. Static tables (networks, RPC endpoints, contract
address and ABI) live here as module constants.
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic_settings import BaseSettings

from d2_event_listener import UnknownNetworkError


# Known networks and their chain ids. -1 is the "unknown network" sentinel.
UNKNOWN_CHAIN_ID = -1

NETWORK_CHAIN_IDS: dict[str, int] = {
    "goerli": 5,
    "hardhat": 1337,
    "kovan": 42,
    "ethereum": 1,
    "rinkeby": 4,
    "ropsten": 3,
    "maticmum": 0xA4EC,
    "sepolia": 11155111,
    "polygon": 137,
    "mumbai": 80001,
    "bnb": 56,
}

# Chains that put more than 32 bytes in extraData and need the POA middleware
POA_NETWORKS = frozenset(["polygon", "mumbai", "maticmum", "bnb", "goerli", "rinkeby"])

DEFAULT_RPC_URLS: dict[str, str] = {
    "goerli": "https://rpc.ankr.com/eth_goerli",
    "hardhat": "http://127.0.0.1:8545",
    "kovan": "https://kovan.poa.network",
    "ethereum": "https://eth.llamarpc.com",
    "rinkeby": "https://rpc.ankr.com/eth_rinkeby",
    "ropsten": "https://rpc.ankr.com/eth_ropsten",
    "maticmum": "https://rpc.ankr.com/polygon_mumbai",
    "sepolia": "https://rpc.sepolia.org",
    "polygon": "https://polygon-rpc.com",
    "mumbai": "https://rpc-mumbai.maticvigil.com",
    "bnb": "https://bsc-dataseed1.binance.org",
}

# Administrative event emitted by upgradeable contracts on initialize()
LIFECYCLE_EVENT_NAMES = frozenset(["Initialized"])

IDEA_CREATED_EVENT = "IdeaCreated"


def _event(name: str, *types: str) -> dict:
    return {
        "type": "event",
        "name": name,
        "anonymous": False,
        "inputs": [
            {"name": f"arg{i}", "type": t, "indexed": False}
            for i, t in enumerate(types)
        ],
    }


def _view(name: str, inputs: list[str], outputs: list[dict]) -> dict:
    return {
        "type": "function",
        "name": name,
        "stateMutability": "view",
        "inputs": [{"name": f"arg{i}", "type": t} for i, t in enumerate(inputs)],
        "outputs": outputs,
    }


GATE_ABI: list[dict] = [
    {
        "type": "event",
        "name": "IdeaCreated",
        "anonymous": False,
        "inputs": [
            {"name": "creator", "type": "address", "indexed": False},
            {"name": "nftId", "type": "uint256", "indexed": False},
            {"name": "strategyReference", "type": "string", "indexed": False},
            {"name": "ideaKey", "type": "uint256", "indexed": False},
            {"name": "ideaStageKey", "type": "uint256", "indexed": False},
            {"name": "blockId", "type": "uint256", "indexed": False},
        ],
    },
    _event("Initialized", "uint8"),
    _view("authorizeCheck", ["address"], [{"name": "", "type": "bool"}]),
    _view("getContractRules", ["uint256"], [{"name": "", "type": "string"}]),
    _view("getCreatorOfNft", ["uint256"], [{"name": "", "type": "address"}]),
    _view("getFirstEventBlock", [], [{"name": "", "type": "uint256"}]),
    _view(
        "getIdeaByKeys",
        ["address", "string", "uint256", "uint256"],
        [{"name": "", "type": "uint256"}],
    ),
    _view("getIdeaCreationTax", [], [{"name": "", "type": "uint256"}]),
    _view("getIdeaViewers", ["uint256"], [{"name": "", "type": "address[]"}]),
    _view("getLastEventBlock", [], [{"name": "", "type": "uint256"}]),
    _view("getLastNftId", [], [{"name": "", "type": "uint256"}]),
    _view(
        "getMetadataIdByBlockId",
        ["uint256"],
        [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": "nftId", "type": "uint256"},
                    {"name": "blockId", "type": "uint256"},
                    {"name": "metadataId", "type": "string"},
                ],
            }
        ],
    ),
    _view("getVersion", [], [{"name": "", "type": "string"}]),
    _view("listIdeas", ["address", "string"], [{"name": "", "type": "uint256[]"}]),
    _view(
        "listStages",
        ["address", "string", "uint256"],
        [{"name": "", "type": "uint256[]"}],
    ),
    _view("providerCheck", ["address"], [{"name": "", "type": "bool"}]),
    _view("uri", ["uint256"], [{"name": "", "type": "string"}]),
]

IDEA_NFT_CONFIG = {
    "gate_contract_address": "0x99aEA5533c117aa39904B66Ceec69435EC9109C8",
    "core_contract_address": "0xc5B2d7f8C1BA4A14C32cba6561Fcf44d588d9EFE",
    "gate_abi": GATE_ABI,
}


class ListenerSettings(BaseSettings):
    """Application settings loaded from environment."""

    app_env: Literal["development", "production"] = "development"

    # Wallet / network
    wallet_private_key: str = ""
    network: str = "polygon"
    rpc_urls: dict[str, str] = {}
    verify_chain_id: bool = False

    # Contract
    gate_contract_address: str = IDEA_NFT_CONFIG["gate_contract_address"]

    # Listener
    poll_interval_seconds: float = 2.0
    max_block_range: int = 1000  # eth_getLogs span per request
    handler_timeout_seconds: Optional[float] = None

    # Test mode
    test_settle_delay_seconds: float = 1.0
    test_timeout_seconds: float = 120.0

    # Storage
    database_url: Optional[str] = None

    # Notifications
    telegram_bot_token: Optional[str] = None
    telegram_chat_id: Optional[str] = None

    log_level: str = "INFO"

    class Config:
        env_prefix = "D2_"
        env_file = ".env"


def get_rpc_url_by_network(
    network: str,
    overrides: Optional[dict[str, str]] = None,
) -> str:
    """
    Look up the RPC endpoint for a network.

    Args:
        network: Network name (e.g. "polygon")
        overrides: Optional per-network URL overrides (from settings)

    Returns:
        RPC URL

    Raises:
        UnknownNetworkError: If the network has no known endpoint
    """
    if overrides and network in overrides:
        return overrides[network]

    url = DEFAULT_RPC_URLS.get(network)
    if url is None:
        raise UnknownNetworkError(f"Invalid network: {network}")
    return url


def get_chain_id(network: str) -> int:
    """Chain id for a network, or UNKNOWN_CHAIN_ID if not supported."""
    return NETWORK_CHAIN_IDS.get(network, UNKNOWN_CHAIN_ID)
