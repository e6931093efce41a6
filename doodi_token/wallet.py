"""
Operator wallet loading and fee balance checks
"""

import json
import logging
import os
from typing import Optional

from solders.keypair import Keypair

from .config import DEFAULT_WALLET_PATH, LAMPORTS_PER_SOL, NetworkConfig
from .errors import ConfigMissing, ValidationError

logger = logging.getLogger(__name__)


def resolve_wallet_path(network: NetworkConfig, wallet_path: Optional[str] = None) -> str:
    path = wallet_path or network.wallet_path or os.getenv("SOLANA_WALLET_PATH") or DEFAULT_WALLET_PATH
    return os.path.expanduser(path)


def load_wallet(network: NetworkConfig, wallet_path: Optional[str] = None) -> Keypair:
    """
    Load the signing keypair.

    WALLET_SECRET_KEY (base58) wins over files; otherwise the Solana CLI JSON
    keypair at the explicit path, the per-network path, SOLANA_WALLET_PATH or
    ~/.config/solana/id.json, in that order.
    """
    secret = os.getenv("WALLET_SECRET_KEY")
    if secret and not wallet_path:
        try:
            keypair = Keypair.from_base58_string(secret.strip())
        except ValueError as e:
            raise ValidationError(f"WALLET_SECRET_KEY is not a valid base58 keypair: {e}")
        logger.info("Wallet loaded from WALLET_SECRET_KEY")
        return keypair

    path = resolve_wallet_path(network, wallet_path)
    if not os.path.isfile(path):
        raise ConfigMissing(f"Wallet file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            keypair = Keypair.from_bytes(bytes(json.load(f)))
    except (ValueError, TypeError) as e:
        raise ValidationError(f"Wallet file {path} is not a Solana keypair: {e}")

    logger.info(f"Wallet loaded from {path}")
    return keypair


async def ensure_sufficient_balance(ledger, network: NetworkConfig, allow_airdrop: bool = True) -> float:
    """
    Make sure the wallet can pay fees and rent, return its SOL balance.

    On networks with a faucet a single airdrop is requested (only reported
    when allow_airdrop is False); elsewhere a low balance is a ValidationError.
    """
    owner = ledger.wallet.pubkey()
    lamports = await ledger.get_sol_balance(owner)
    balance = lamports / LAMPORTS_PER_SOL
    print(f"💰 Wallet balance: {balance:.4f} SOL")

    if balance >= network.min_sol_balance:
        return balance

    if not network.airdrop_enabled:
        raise ValidationError(
            f"Insufficient SOL balance: {balance:.4f} SOL, at least {network.min_sol_balance} SOL "
            f"required on {network.name}"
        )

    if not allow_airdrop:
        logger.warning(f"Balance below {network.min_sol_balance} SOL, an airdrop would be requested")
        print(f"🪂 Balance below {network.min_sol_balance} SOL - an airdrop would be requested")
        return balance

    request = max(int((network.min_sol_balance * 2) * LAMPORTS_PER_SOL), LAMPORTS_PER_SOL)
    print(f"🪂 Requesting airdrop of {request / LAMPORTS_PER_SOL:.2f} SOL...")
    await ledger.request_airdrop(owner, request)

    lamports = await ledger.get_sol_balance(owner)
    balance = lamports / LAMPORTS_PER_SOL
    print(f"✅ Balance after airdrop: {balance:.4f} SOL")
    if balance < network.min_sol_balance:
        raise ValidationError(f"Airdrop did not bring the balance above {network.min_sol_balance} SOL")
    return balance
