import asyncio
import json

import pytest

from conftest import DECIMALS, FakeLedger, ScriptedPrompt, connector, rpc_transport_error, write_record
from doodi_token.create_token import build_parser, create_token
from doodi_token.errors import LedgerExecutionError, ValidationError
from doodi_token.workflow import WorkflowState


def run_create(ledger, store, answer="yes", network="devnet", dry_run=False):
    prompt = ScriptedPrompt(answer)
    result = asyncio.run(create_token(
        network,
        None,
        dry_run,
        store=store,
        connect=connector(ledger),
        confirm=prompt,
    ))
    return result, prompt


def test_create_writes_state_file(store):
    ledger = FakeLedger()

    result, prompt = run_create(ledger, store)

    assert result.state is WorkflowState.DONE
    saved = json.loads(store.path.read_text(encoding="utf-8"))
    assert saved["mintAddress"] == str(ledger.mint)
    assert saved["mintAuthority"] == str(ledger.wallet.pubkey())
    assert saved["status"] == "active"
    assert saved["decimals"] == DECIMALS
    assert saved["network"] == "devnet"
    assert saved["tokenAccount"] == str(ledger.addresses[str(ledger.wallet.pubkey())])
    assert saved["freezeAuthority"] is None
    assert [call[0] for call in ledger.writes] == ["create_mint", "create_account"]
    assert ledger.supply == 0


def test_declined_create_writes_nothing(store):
    ledger = FakeLedger()

    result, prompt = run_create(ledger, store, answer="no")

    assert result.state is WorkflowState.ABORTED
    assert prompt.prompts == 1
    assert ledger.writes == []
    assert not store.exists()


def test_dry_run_create_skips_faucet_and_ledger(store):
    ledger = FakeLedger(sol_lamports=0)

    result, prompt = run_create(ledger, store, dry_run=True)

    assert result.state is WorkflowState.ABORTED
    assert prompt.prompts == 0
    assert ledger.writes == []
    assert not store.exists()


def test_low_devnet_balance_requests_airdrop(store):
    ledger = FakeLedger(sol_lamports=0)

    result, _ = run_create(ledger, store)

    assert result.state is WorkflowState.DONE
    airdrops = [call for call in ledger.writes if call[0] == "request_airdrop"]
    assert len(airdrops) == 1
    assert airdrops[0][2] == 2_000_000_000


def test_low_mainnet_balance_is_rejected(store):
    ledger = FakeLedger(sol_lamports=1_000)

    with pytest.raises(ValidationError, match="Insufficient SOL balance"):
        run_create(ledger, store, network="mainnet")
    assert ledger.writes == []


def test_summary_mentions_replaced_record(store):
    previous = FakeLedger()
    write_record(store, previous)
    ledger = FakeLedger()

    result, prompt = run_create(ledger, store, answer="no")

    assert str(previous.mint) in prompt.actions[0].description
    assert json.loads(store.path.read_text(encoding="utf-8"))["mintAddress"] == str(previous.mint)


def test_mint_failure_leaves_state_untouched(store):
    ledger = FakeLedger()
    ledger.fail_with = LedgerExecutionError("create mint failed")

    with pytest.raises(LedgerExecutionError):
        run_create(ledger, store)
    assert not store.exists()


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.network == "devnet"
    assert args.wallet_path is None
    assert args.dry_run is False

    args = build_parser().parse_args(["MAINNET", "~/wallet.json", "--dry-run"])
    assert args.network == "mainnet"
    assert args.wallet_path == "~/wallet.json"
    assert args.dry_run is True


def test_network_error_on_verification_keeps_record(store):
    ledger = FakeLedger()
    ledger.read_fail_with = rpc_transport_error()

    result, _ = run_create(ledger, store)

    assert result.state is WorkflowState.DONE
    assert json.loads(store.path.read_text(encoding="utf-8"))["mintAddress"] == str(ledger.mint)
