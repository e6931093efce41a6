import json
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

import httpx
import pytest
from solana.exceptions import SolanaRpcException
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from doodi_token.confirmation import confirm_action
from doodi_token.errors import LedgerExecutionError, PersistenceWarning
from doodi_token.ledger import LedgerClient
from doodi_token.receipts import ReceiptRecorder
from doodi_token.state_store import StateStore
from doodi_token.types import MintSnapshot, TokenAccountSnapshot

DECIMALS = 6
WRITE_CALLS = {"create_mint", "create_account", "mint_to", "burn", "revoke", "request_airdrop"}


class FakeLedger:
    """
    In-memory stand-in for LedgerClient.

    Reads go through the real SDK error translation; `read_fail_with` makes
    every mint read after the first ledger write raise the given SDK exception.
    """

    _call = LedgerClient._call

    def __init__(self, supply_ui: float = 0, wallet_balance_ui: Optional[float] = None,
                 decimals: int = DECIMALS, sol_lamports: int = 5_000_000_000):
        self.wallet = Keypair()
        self.mint = Keypair().pubkey()
        self.decimals = decimals
        self.supply = int(round(supply_ui * 10 ** decimals))
        self.mint_authority: Optional[str] = str(self.wallet.pubkey())
        self.sol_lamports = sol_lamports
        self.addresses: Dict[str, Pubkey] = {}
        self.balances: Dict[str, int] = {}
        self.calls: List[tuple] = []
        self.fail_with: Optional[Exception] = None
        self.read_fail_with: Optional[Exception] = None
        self.connections = 0
        if wallet_balance_ui is not None:
            owner = str(self.wallet.pubkey())
            self.addresses[owner] = Keypair().pubkey()
            self.balances[owner] = int(round(wallet_balance_ui * 10 ** decimals))

    @property
    def writes(self) -> List[tuple]:
        return [call for call in self.calls if call[0] in WRITE_CALLS]

    def _write(self, *call):
        self.calls.append(call)
        if self.fail_with is not None:
            raise self.fail_with

    def _owner_of(self, account: Pubkey) -> str:
        for owner, address in self.addresses.items():
            if address == account:
                return owner
        raise AssertionError(f"unknown token account {account}")

    async def _read_mint(self, mint):
        if self.read_fail_with is not None and self.writes:
            raise self.read_fail_with
        return MintSnapshot(str(mint), self.supply, self.decimals, self.mint_authority, None)

    async def get_mint_info(self, mint):
        self.calls.append(("get_mint_info", mint))
        return await self._call("get mint info", self._read_mint(mint))

    def associated_address(self, owner, mint):
        return self.addresses.setdefault(str(owner), Keypair().pubkey())

    async def find_token_account(self, owner, mint):
        self.calls.append(("find_token_account", owner))
        if str(owner) not in self.balances:
            return None
        return TokenAccountSnapshot(str(self.addresses[str(owner)]), str(owner), self.balances[str(owner)])

    async def get_account_balance(self, account):
        return self.balances[self._owner_of(account)]

    async def get_sol_balance(self, owner):
        return self.sol_lamports

    async def request_airdrop(self, owner, lamports):
        self._write("request_airdrop", owner, lamports)
        self.sol_lamports += lamports
        return "airdrop-signature"

    async def create_mint(self, decimals):
        self._write("create_mint", decimals)
        self.decimals = decimals
        self.mint_authority = str(self.wallet.pubkey())
        return self.mint

    async def get_or_create_associated_account(self, owner, mint):
        address = self.associated_address(owner, mint)
        if str(owner) not in self.balances:
            self._write("create_account", owner)
            self.balances[str(owner)] = 0
        return address

    async def mint_to(self, mint, destination, amount):
        self._write("mint_to", mint, destination, amount)
        self.supply += amount
        self.balances[self._owner_of(destination)] += amount
        return "mint-signature"

    async def burn(self, mint, account, amount):
        self._write("burn", mint, account, amount)
        self.supply -= amount
        self.balances[self._owner_of(account)] -= amount
        return "burn-signature"

    async def revoke_mint_authority(self, mint):
        self._write("revoke", mint)
        self.mint_authority = None
        return "revoke-signature"


def connector(ledger: FakeLedger):
    @asynccontextmanager
    async def connect(network, wallet_path=None):
        ledger.connections += 1
        yield ledger
    return connect


class ScriptedPrompt:
    """Confirmation gate fed with a fixed answer; remembers what it was shown"""

    def __init__(self, answer: str):
        self.answer = answer
        self.actions = []
        self.prompts = 0

    def _prompt(self, text: str) -> str:
        self.prompts += 1
        return self.answer

    def __call__(self, action) -> bool:
        self.actions.append(action)
        return confirm_action(action, prompt=self._prompt)


class FailingRecorder(ReceiptRecorder):
    def __init__(self):
        super().__init__(directory=".")

    def record(self, receipt):
        raise PersistenceWarning("disk full")


@pytest.fixture
def ledger():
    return FakeLedger(supply_ui=1_000_000, wallet_balance_ui=1_000_000)


@pytest.fixture
def store(tmp_path):
    return StateStore(tmp_path / "doodi-token-info.json")


@pytest.fixture
def recorder(tmp_path):
    return ReceiptRecorder(tmp_path / "records")


def write_record(store: StateStore, ledger: FakeLedger, **overrides) -> dict:
    data = {
        "name": "DOODi",
        "symbol": "DOODI",
        "decimals": DECIMALS,
        "mintAddress": str(ledger.mint),
        "tokenAccount": None,
        "network": "devnet",
        "mintAuthority": str(ledger.wallet.pubkey()),
        "freezeAuthority": None,
        "status": "active",
        "createdAt": "2026-01-01T00:00:00Z",
    }
    data.update(overrides)
    store.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return data


def receipts_in(recorder: ReceiptRecorder) -> List[dict]:
    if not recorder.directory.exists():
        return []
    return [json.loads(path.read_text(encoding="utf-8"))
            for path in sorted(recorder.directory.glob("*-record-*.json"))]


def ledger_error() -> LedgerExecutionError:
    return LedgerExecutionError("burn failed: InstructionError", payload={"InstructionError": [0, "Custom"]},
                                logs=["Program log: Error: insufficient funds"])


class GetTokenSupply:
    """Stands in for the solders request body the provider passes along"""


def rpc_transport_error() -> SolanaRpcException:
    """A network failure the way solana-py's async provider raises it"""
    cause = httpx.ConnectError("connection reset by peer")
    error = SolanaRpcException(cause, lambda *args: None, None, GetTokenSupply())
    error.__cause__ = cause
    return error
