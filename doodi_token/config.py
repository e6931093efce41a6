"""
Configuration: supported networks, token constants and file locations
Values can be overridden through the environment or a .env file
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import load_dotenv

from .errors import ValidationError

load_dotenv()

DEFAULT_WALLET_PATH = os.path.join("~", ".config", "solana", "id.json")
EXPLORER_URL = "https://explorer.solana.com"
LAMPORTS_PER_SOL = 1_000_000_000


@dataclass(frozen=True)
class NetworkConfig:
    """Connection settings for one Solana cluster"""
    key: str
    name: str
    url: str
    cluster: str
    explorer_url: str = EXPLORER_URL
    min_sol_balance: float = 0.05
    airdrop_enabled: bool = False
    wallet_path: Optional[str] = None

    def explorer_link(self, kind: str, value: str) -> str:
        """kind is 'tx' or 'address'"""
        cluster_param = "" if self.cluster == "mainnet-beta" else f"?cluster={self.cluster}"
        return f"{self.explorer_url}/{kind}/{value}{cluster_param}"


NETWORKS: Dict[str, NetworkConfig] = {
    "devnet": NetworkConfig(
        key="devnet",
        name="Solana Devnet",
        url=os.getenv("DEVNET_RPC_URL", "https://api.devnet.solana.com"),
        cluster="devnet",
        min_sol_balance=1.0,
        airdrop_enabled=True,
        wallet_path=os.getenv("DEVNET_WALLET_PATH"),
    ),
    "mainnet": NetworkConfig(
        key="mainnet",
        name="Solana Mainnet",
        url=os.getenv("MAINNET_RPC_URL", "https://api.mainnet-beta.solana.com"),
        cluster="mainnet-beta",
        min_sol_balance=0.05,
        wallet_path=os.getenv("MAINNET_WALLET_PATH"),
    ),
}


def get_network_config(network: str) -> NetworkConfig:
    config = NETWORKS.get(network.lower())
    if config is None:
        raise ValidationError(f"Unsupported network: {network}. Supported: {', '.join(NETWORKS)}")
    return config


@dataclass(frozen=True)
class TokenConfig:
    name: str
    symbol: str
    decimals: int
    max_supply: int


TOKEN_CONFIG = TokenConfig(
    name=os.getenv("TOKEN_NAME", "DOODi"),
    symbol=os.getenv("TOKEN_SYMBOL", "DOODI"),
    decimals=6,
    max_supply=1_000_000_000,
)


def token_info_path() -> str:
    return os.getenv("DOODI_TOKEN_INFO_PATH", "./doodi-token-info.json")


def records_dir() -> str:
    return os.getenv("DOODI_RECORDS_DIR", ".")
