"""
Ledger Action Invoker

Thin async wrapper around solana-py and spl.token. Every state-changing call
is sent without the SDK's implicit confirmation and then confirmed here at
the `confirmed` commitment level until the blockhash it was built with
expires, so failures surface in one place as LedgerExecutionError.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Confirmed
from solana.rpc.core import (RPCException, RPCNoResultException, TransactionExpiredBlockheightExceededError,
                             UnconfirmedTxError)
from solana.rpc.types import TxOpts
from solders.hash import Hash as Blockhash
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature
from spl.token.async_client import AsyncToken
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import AuthorityType, get_associated_token_address

from .config import NetworkConfig
from .errors import LedgerExecutionError, ValidationError
from .types import MintSnapshot, TokenAccountSnapshot
from .wallet import load_wallet

logger = logging.getLogger(__name__)

SEND_OPTS = TxOpts(skip_confirmation=True, preflight_commitment=Confirmed)


def parse_pubkey(address: str, what: str = "address") -> Pubkey:
    try:
        return Pubkey.from_string(address.strip())
    except ValueError as e:
        raise ValidationError(f"Invalid {what} {address!r}: {e}")


def _preflight_logs(error: Any) -> List[str]:
    data = getattr(error, "data", None)
    logs = getattr(data, "logs", None)
    return list(logs) if logs else []


class LedgerClient:
    """
    Connection + payer wallet for one network.

    The wallet pays for and signs every transaction; it is also the mint
    authority and burn owner this tool expects.
    """

    def __init__(self, connection: AsyncClient, wallet: Keypair, network: NetworkConfig):
        self.connection = connection
        self.wallet = wallet
        self.network = network

    async def close(self):
        await self.connection.close()

    def _token(self, mint: Pubkey) -> AsyncToken:
        return AsyncToken(self.connection, mint, TOKEN_PROGRAM_ID, self.wallet)

    async def _call(self, what: str, operation: Awaitable[Any]) -> Any:
        """Run an SDK call, translating SDK and transport failures"""
        try:
            return await operation
        except RPCException as e:
            error = e.args[0] if e.args else e
            logs = _preflight_logs(error)
            raise LedgerExecutionError(f"{what} rejected by the ledger: {getattr(error, 'message', error)}",
                                       payload=error, logs=logs)
        except RPCNoResultException as e:
            raise LedgerExecutionError(f"{what} returned no result: {e}", payload=str(e))
        except (UnconfirmedTxError, TransactionExpiredBlockheightExceededError) as e:
            raise LedgerExecutionError(f"{what} was not confirmed in time: {e}", payload=str(e))
        except SolanaRpcException as e:
            # The provider wraps httpx errors; the original one is the cause
            cause = e.__cause__ or e
            raise LedgerExecutionError(f"{what} failed: RPC transport error {type(cause).__name__}: {cause}",
                                       payload=e.error_msg)
        except httpx.HTTPError as e:
            raise LedgerExecutionError(f"{what} failed: RPC transport error {type(e).__name__}: {e}",
                                       payload=str(e))

    async def _latest_blockhash(self):
        resp = await self._call("get latest blockhash", self.connection.get_latest_blockhash())
        return resp.value

    async def _confirm(self, what: str, signature: Signature, last_valid_block_height: int) -> str:
        resp = await self._call(
            f"{what} confirmation",
            self.connection.confirm_transaction(
                signature,
                Confirmed,
                last_valid_block_height=last_valid_block_height,
            ),
        )
        status = resp.value[0] if resp.value else None
        if status is not None and status.err is not None:
            raise LedgerExecutionError(f"{what} failed: {status.err}", payload=status.err)
        logger.info(f"{what} confirmed: {signature}")
        return str(signature)

    async def _send_and_confirm(self, what: str, send: Callable[[Blockhash], Awaitable[Any]]) -> str:
        """
        Build and send with a prefetched blockhash, then confirm until that
        blockhash expires.
        """
        latest = await self._latest_blockhash()
        resp = await self._call(what, send(latest.blockhash))
        return await self._confirm(what, resp.value, latest.last_valid_block_height)

    # --- queries ---

    async def get_mint_info(self, mint: Pubkey) -> MintSnapshot:
        info = await self._call("get mint info", self._token(mint).get_mint_info())
        return MintSnapshot(
            address=str(mint),
            supply=int(info.supply),
            decimals=int(info.decimals),
            mint_authority=str(info.mint_authority) if info.mint_authority else None,
            freeze_authority=str(info.freeze_authority) if info.freeze_authority else None,
        )

    def associated_address(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        return get_associated_token_address(owner, mint)

    async def find_token_account(self, owner: Pubkey, mint: Pubkey) -> Optional[TokenAccountSnapshot]:
        """Read-only lookup of the owner's associated account; None if it does not exist"""
        address = self.associated_address(owner, mint)
        resp = await self._call("get account info", self.connection.get_account_info(address))
        if resp.value is None:
            return None
        amount = await self.get_account_balance(address)
        return TokenAccountSnapshot(address=str(address), owner=str(owner), amount=amount)

    async def get_account_balance(self, account: Pubkey) -> int:
        resp = await self._call("get account balance", self.connection.get_token_account_balance(account))
        return int(resp.value.amount)

    async def get_sol_balance(self, owner: Pubkey) -> int:
        resp = await self._call("get balance", self.connection.get_balance(owner))
        return int(resp.value)

    # --- state-changing calls ---

    async def create_mint(self, decimals: int) -> Pubkey:
        token = await self._call(
            "create mint",
            AsyncToken.create_mint(
                self.connection,
                self.wallet,
                self.wallet.pubkey(),
                decimals,
                TOKEN_PROGRAM_ID,
                freeze_authority=None,
            ),
        )
        logger.info(f"Mint created: {token.pubkey}")
        return token.pubkey

    async def get_or_create_associated_account(self, owner: Pubkey, mint: Pubkey) -> Pubkey:
        address = self.associated_address(owner, mint)
        resp = await self._call("get account info", self.connection.get_account_info(address))
        if resp.value is not None:
            return address
        created = await self._call(
            "create associated account",
            self._token(mint).create_associated_token_account(owner),
        )
        logger.info(f"Associated account {created} created for {owner}")
        return created

    async def mint_to(self, mint: Pubkey, destination: Pubkey, amount: int) -> str:
        token = self._token(mint)
        return await self._send_and_confirm(
            "mint",
            lambda blockhash: token.mint_to(destination, self.wallet, amount, opts=SEND_OPTS,
                                            recent_blockhash=blockhash),
        )

    async def burn(self, mint: Pubkey, account: Pubkey, amount: int) -> str:
        token = self._token(mint)
        return await self._send_and_confirm(
            "burn",
            lambda blockhash: token.burn(account, self.wallet, amount, opts=SEND_OPTS,
                                         recent_blockhash=blockhash),
        )

    async def revoke_mint_authority(self, mint: Pubkey) -> str:
        token = self._token(mint)
        return await self._send_and_confirm(
            "revoke mint authority",
            lambda blockhash: token.set_authority(
                mint,
                self.wallet,
                AuthorityType.MINT_TOKENS,
                new_authority=None,
                opts=SEND_OPTS,
                recent_blockhash=blockhash,
            ),
        )

    async def request_airdrop(self, owner: Pubkey, lamports: int) -> str:
        # The faucet builds this transaction, so its blockhash is not ours
        resp = await self._call("airdrop", self.connection.request_airdrop(owner, lamports))
        latest = await self._latest_blockhash()
        return await self._confirm("airdrop", resp.value, latest.last_valid_block_height)


@asynccontextmanager
async def open_ledger(network: NetworkConfig, wallet_path: Optional[str] = None) -> AsyncIterator[LedgerClient]:
    """Load the wallet and open a connection to `network` for the duration of the block"""
    wallet = load_wallet(network, wallet_path)
    connection = AsyncClient(network.url, commitment=Confirmed)
    logger.info(f"Connected to {network.name} ({network.url})")
    client = LedgerClient(connection, wallet, network)
    try:
        yield client
    finally:
        await client.close()
