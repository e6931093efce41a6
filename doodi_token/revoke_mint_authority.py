"""
Revoke Mint Authority

Permanently revokes the mint authority of the token recorded in
doodi-token-info.json, fixing the supply forever. The wallet must be the
current mint authority.
"""

import logging
import sys
from typing import Optional

from .amounts import format_amount
from .cli import UsageArgumentParser, add_common_arguments, run_workflow, setup_logging
from .config import get_network_config
from .confirmation import confirm_action
from .errors import AuthorityMismatch, LedgerExecutionError
from .ledger import open_ledger, parse_pubkey
from .notifier import TelegramNotifier
from .receipts import ReceiptRecorder
from .state_store import StateStore
from .types import ActionReceipt, PendingAction
from .workflow import WorkflowResult, WorkflowRun, WorkflowState, notify

logger = logging.getLogger(__name__)


async def revoke_mint_authority(
    dry_run: bool = False,
    *,
    store: Optional[StateStore] = None,
    recorder: Optional[ReceiptRecorder] = None,
    connect=open_ledger,
    confirm=confirm_action,
    notifier=None,
) -> WorkflowResult:
    store = store or StateStore()
    recorder = recorder or ReceiptRecorder()
    run = WorkflowRun("revoke")

    with run.tracking():
        record = store.load()
        run.advance(WorkflowState.VALIDATING)

        if record.is_finalized:
            print(f"   Token: {record.name} ({record.symbol})")
            print(f"   Mint Address: {record.mint_address}")
            return run.finish("✅ Mint authority already revoked for this token")

        print(f"🔒 Revoking mint authority for {record.name}...")
        print(f"   Token: {record.name} ({record.symbol})")
        print(f"   Mint Address: {record.mint_address}")
        print(f"   Network: {record.network}")

        network_config = get_network_config(record.network)
        mint = parse_pubkey(record.mint_address, "mint address")

        async with connect(network_config) as ledger:
            wallet = str(ledger.wallet.pubkey())
            print(f"👛 Using wallet: {wallet}")

            mint_info = await ledger.get_mint_info(mint)
            if mint_info.mint_authority is None:
                # Revoked earlier outside this tool, only the local record is stale
                record.mark_revoked()
                run.best_effort("Updating token info", lambda: store.save(record))
                return run.finish("✅ Mint authority is already null - token supply is fixed")

            if mint_info.mint_authority != wallet:
                raise AuthorityMismatch(
                    f"Wallet is not the mint authority (current authority: {mint_info.mint_authority}, "
                    f"wallet: {wallet})",
                    expected=mint_info.mint_authority,
                    actual=wallet,
                )

            supply = format_amount(mint_info.supply_ui, mint_info.decimals)
            print(f"📊 Current Token Supply: {supply} {record.symbol}")

            action = PendingAction(
                description="\n".join([
                    "🔒 REVOKE MINT AUTHORITY:",
                    f"   • Mint: {record.mint_address}",
                    f"   • Current authority: {mint_info.mint_authority}",
                    f"   • Supply will be fixed at: {supply} {record.symbol} ({mint_info.supply} base units)",
                    "   • No more tokens can ever be minted after this action",
                ]),
                network=record.network,
                target_address=record.mint_address,
                is_dry_run=dry_run,
            )

            run.advance(WorkflowState.AWAITING_CONFIRMATION)
            if not confirm(action):
                if dry_run:
                    return run.abort("🎯 DRY RUN COMPLETE - mint authority was not changed")
                return run.abort("❌ Operation cancelled by user")

            run.advance(WorkflowState.EXECUTING)
            print("\n🔒 Revoking mint authority...")
            signature = await ledger.revoke_mint_authority(mint)

            run.advance(WorkflowState.RECORDING)
            print("✅ Mint authority revoked successfully!")
            print(f"   Transaction: {signature}")

            try:
                updated = await ledger.get_mint_info(mint)
                print("\n📊 Final Token Status:")
                print(f"   Supply: {format_amount(updated.supply_ui, updated.decimals)} {record.symbol} (FIXED)")
                print(f"   Mint Authority: {updated.mint_authority or 'None - Supply is permanent'}")
            except LedgerExecutionError as e:
                logger.warning(f"Could not verify the revoked mint: {e}")

        previous_authority = record.mint_authority
        record.mark_revoked(signature)
        if run.best_effort("Updating token info", lambda: store.save(record)):
            print("\n💾 Token info updated")

        receipt = ActionReceipt(
            action="revoke",
            token_snapshot=record.snapshot(),
            action_details={"authorityType": "MintTokens", "supply": mint_info.supply_ui},
            ledger_signature=signature,
            before_value=previous_authority,
            after_value=None,
            value_label="mintAuthority",
        )
        receipt_path = run.best_effort("Saving revoke record", lambda: recorder.record(receipt))

        print("\n🔗 View on Solana Explorer:")
        print(f"   Token: {network_config.explorer_link('address', record.mint_address)}")
        print(f"   Revoke Transaction: {network_config.explorer_link('tx', signature)}")

        await notify(
            notifier,
            f"{record.symbol} mint authority revoked",
            f"Supply permanently fixed at {supply} {record.symbol}\nTX: {signature}",
        )
        return run.finish(f"🎉 {record.name} supply is now permanently fixed!",
                          signature=signature, receipt_path=receipt_path)


def build_parser() -> UsageArgumentParser:
    parser = UsageArgumentParser(
        prog="doodi-revoke",
        description="Permanently revoke the mint authority, making the token supply fixed forever.",
        epilog=(
            "Requires doodi-token-info.json and the current mint authority wallet. "
            "WARNING: this action is IRREVERSIBLE!"
        ),
    )
    add_common_arguments(parser)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return run_workflow(lambda: revoke_mint_authority(args.dry_run, notifier=TelegramNotifier()))


if __name__ == "__main__":
    sys.exit(main())
