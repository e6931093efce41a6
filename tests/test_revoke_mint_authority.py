import asyncio
import json

import pytest
from solders.keypair import Keypair

from conftest import FailingRecorder, ScriptedPrompt, connector, receipts_in, rpc_transport_error, write_record
from doodi_token.errors import AuthorityMismatch, LedgerExecutionError
from doodi_token.revoke_mint_authority import revoke_mint_authority
from doodi_token.workflow import WorkflowState


def run_revoke(ledger, store, recorder, answer="yes", dry_run=False):
    prompt = ScriptedPrompt(answer)
    result = asyncio.run(revoke_mint_authority(
        dry_run,
        store=store,
        recorder=recorder,
        connect=connector(ledger),
        confirm=prompt,
    ))
    return result, prompt


def test_revoke_updates_state_and_writes_receipt(ledger, store, recorder):
    write_record(store, ledger)

    result, prompt = run_revoke(ledger, store, recorder)

    assert result.state is WorkflowState.DONE
    assert result.signature == "revoke-signature"
    assert ledger.mint_authority is None

    saved = json.loads(store.path.read_text(encoding="utf-8"))
    assert saved["mintAuthority"] is None
    assert saved["status"] == "completed"
    assert saved["revokeTransaction"] == "revoke-signature"
    assert saved["revokedAt"]

    receipts = receipts_in(recorder)
    assert len(receipts) == 1
    details = receipts[0]["revokeDetails"]
    assert details["mintAuthorityBefore"] == str(ledger.wallet.pubkey())
    assert details["mintAuthorityAfter"] is None


def test_rerun_after_revoke_short_circuits(ledger, store, recorder):
    write_record(store, ledger)
    run_revoke(ledger, store, recorder)
    connections = ledger.connections

    result, prompt = run_revoke(ledger, store, recorder)

    assert result.state is WorkflowState.DONE
    assert "already revoked" in result.message
    assert prompt.actions == []
    assert ledger.connections == connections
    assert len([call for call in ledger.writes if call[0] == "revoke"]) == 1


def test_declined_revoke_keeps_authority(ledger, store, recorder):
    original = write_record(store, ledger)

    result, prompt = run_revoke(ledger, store, recorder, answer="no")

    assert result.state is WorkflowState.ABORTED
    assert ledger.mint_authority == str(ledger.wallet.pubkey())
    assert json.loads(store.path.read_text(encoding="utf-8")) == original
    assert receipts_in(recorder) == []


def test_dry_run_revoke(ledger, store, recorder):
    write_record(store, ledger)

    result, prompt = run_revoke(ledger, store, recorder, dry_run=True)

    assert result.state is WorkflowState.ABORTED
    assert prompt.prompts == 0
    assert ledger.writes == []


def test_already_null_on_chain_syncs_record(ledger, store, recorder):
    write_record(store, ledger)
    ledger.mint_authority = None

    result, prompt = run_revoke(ledger, store, recorder)

    assert result.state is WorkflowState.DONE
    assert prompt.actions == []
    assert ledger.writes == []
    saved = json.loads(store.path.read_text(encoding="utf-8"))
    assert saved["status"] == "completed"
    assert saved["mintAuthority"] is None


def test_wallet_must_be_the_mint_authority(ledger, store, recorder):
    write_record(store, ledger)
    ledger.mint_authority = str(Keypair().pubkey())

    with pytest.raises(AuthorityMismatch):
        run_revoke(ledger, store, recorder)
    assert ledger.writes == []


def test_ledger_failure_keeps_record_active(ledger, store, recorder):
    original = write_record(store, ledger)
    ledger.fail_with = LedgerExecutionError("revoke mint authority failed", payload="err")

    with pytest.raises(LedgerExecutionError):
        run_revoke(ledger, store, recorder)

    assert json.loads(store.path.read_text(encoding="utf-8")) == original
    assert receipts_in(recorder) == []


def test_receipt_failure_still_updates_state(ledger, store):
    write_record(store, ledger)

    result, _ = run_revoke(ledger, store, FailingRecorder())

    assert result.state is WorkflowState.DONE
    assert result.warnings
    assert json.loads(store.path.read_text(encoding="utf-8"))["status"] == "completed"


def test_network_error_on_post_check_keeps_revoke_done(ledger, store, recorder):
    write_record(store, ledger)
    ledger.read_fail_with = rpc_transport_error()

    result, _ = run_revoke(ledger, store, recorder)

    assert result.state is WorkflowState.DONE
    assert json.loads(store.path.read_text(encoding="utf-8"))["status"] == "completed"
    assert len(receipts_in(recorder)) == 1
