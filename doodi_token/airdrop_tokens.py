"""
Mint-based airdrop

Mints new tokens straight into a recipient's associated token account while
the mint authority is still active.

Usage examples:
  doodi-airdrop devnet <recipient> 1000
  doodi-airdrop mainnet <recipient> 250000 --dry-run
"""

import logging
import sys
from typing import Optional

from .amounts import format_amount, to_ui_amount, validate_positive_amount
from .cli import (UsageArgumentParser, add_common_arguments, network_arg, positive_amount_arg,
                  run_workflow, setup_logging)
from .config import TOKEN_CONFIG, get_network_config
from .confirmation import confirm_action
from .errors import AuthorityMismatch, ValidationError
from .ledger import open_ledger, parse_pubkey
from .notifier import TelegramNotifier
from .receipts import ReceiptRecorder
from .state_store import StateStore
from .types import ActionReceipt, PendingAction
from .workflow import WorkflowResult, WorkflowRun, WorkflowState, notify, requery_supply

logger = logging.getLogger(__name__)


async def airdrop_tokens(
    network: str,
    recipient: str,
    amount: float,
    dry_run: bool = False,
    *,
    store: Optional[StateStore] = None,
    recorder: Optional[ReceiptRecorder] = None,
    connect=open_ledger,
    confirm=confirm_action,
    notifier=None,
    max_supply: int = TOKEN_CONFIG.max_supply,
) -> WorkflowResult:
    store = store or StateStore()
    recorder = recorder or ReceiptRecorder()
    run = WorkflowRun("airdrop")

    with run.tracking():
        record = store.load()

        print(f"🪂 {'DRY RUN - ' if dry_run else ''}Airdrop of {record.name}...")
        print(f"   Token: {record.name} ({record.symbol})")
        print(f"   Mint Address: {record.mint_address}")

        if record.network != network:
            logger.warning(f"Network mismatch: token is on {record.network}, but {network} specified")
            print(f"⚠️  Network mismatch: token is on {record.network}, using token network")
            network = record.network
        network_config = get_network_config(network)

        run.advance(WorkflowState.VALIDATING)
        if record.is_finalized:
            raise ValidationError(f"Mint authority of {record.symbol} is revoked; the supply is fixed")
        if amount is None or amount <= 0:
            raise ValidationError("Airdrop amount must be greater than 0")
        owner = parse_pubkey(recipient, "recipient address")
        mint = parse_pubkey(record.mint_address, "mint address")

        async with connect(network_config) as ledger:
            wallet = str(ledger.wallet.pubkey())
            print(f"👛 Using wallet: {wallet}")

            mint_info = await ledger.get_mint_info(mint)
            decimals = mint_info.decimals
            if mint_info.mint_authority is None:
                raise ValidationError(
                    f"Mint authority is already null on-chain; run doodi-revoke to sync {store.path}"
                )
            if mint_info.mint_authority != wallet:
                raise AuthorityMismatch(
                    f"Wallet is not the mint authority (current authority: {mint_info.mint_authority}, "
                    f"wallet: {wallet})",
                    expected=mint_info.mint_authority,
                    actual=wallet,
                )

            amount_raw = validate_positive_amount(amount, decimals)
            max_raw = max_supply * 10 ** decimals
            if mint_info.supply + amount_raw > max_raw:
                remaining = to_ui_amount(max_raw - mint_info.supply, decimals)
                raise ValidationError(
                    f"Airdrop would exceed the maximum supply of {format_amount(max_supply, 0)} {record.symbol}; "
                    f"at most {format_amount(remaining, decimals)} {record.symbol} can still be minted"
                )

            existing = await ledger.find_token_account(owner, mint)
            if existing is not None:
                account_line = f"   • Recipient account: {existing.address}"
            else:
                account_line = (f"   • Recipient account: {ledger.associated_address(owner, mint)} "
                                f"(will be created)")

            amount_ui = to_ui_amount(amount_raw, decimals)
            supply_before = mint_info.supply_ui
            new_supply_raw = mint_info.supply + amount_raw
            action = PendingAction(
                description="\n".join([
                    "\n🪂 AIRDROP (MINT) OPERATION:",
                    f"   • Will mint: {format_amount(amount_ui, decimals)} {record.symbol} ({amount_raw} base units)",
                    f"   • Recipient: {owner}",
                    account_line,
                    f"   • Current total supply: {format_amount(supply_before, decimals)} {record.symbol}",
                    f"   • New total supply: {format_amount(to_ui_amount(new_supply_raw, decimals), decimals)} {record.symbol}",
                ]),
                network=network,
                amount=amount_ui,
                target_address=str(owner),
                is_dry_run=dry_run,
            )

            run.advance(WorkflowState.AWAITING_CONFIRMATION)
            if not confirm(action):
                if dry_run:
                    return run.abort("🎯 DRY RUN COMPLETE - No tokens were minted")
                return run.abort("❌ Airdrop cancelled by user")

            run.advance(WorkflowState.EXECUTING)
            destination = await ledger.get_or_create_associated_account(owner, mint)
            print(f"\n🪂 Minting {format_amount(amount_ui, decimals)} {record.symbol} to {destination}...")
            signature = await ledger.mint_to(mint, destination, amount_raw)

            run.advance(WorkflowState.RECORDING)
            print("\n🎉 Airdrop completed successfully!")
            print(f"   • Transaction: {signature}")
            print(f"   • Explorer: {network_config.explorer_link('tx', signature)}")
            supply_after = to_ui_amount(await requery_supply(run, ledger, mint, new_supply_raw), decimals)

        snapshot = record.snapshot()
        snapshot["network"] = network
        receipt = ActionReceipt(
            action="airdrop",
            token_snapshot=snapshot,
            action_details={
                "amount": amount_ui,
                "amountRaw": amount_raw,
                "recipient": str(owner),
                "recipientAccount": str(destination),
            },
            ledger_signature=signature,
            before_value=supply_before,
            after_value=supply_after,
        )
        receipt_path = run.best_effort("Saving airdrop record", lambda: recorder.record(receipt))
        if receipt_path:
            print(f"\n💾 Airdrop record saved to: {receipt_path}")

        await notify(
            notifier,
            f"{record.symbol} airdrop on {network}",
            f"Minted {format_amount(amount_ui, decimals)} {record.symbol} to {owner}\nTX: {signature}",
        )
        return run.finish("🪂 Airdrop finished", signature=signature, receipt_path=receipt_path)


def build_parser() -> UsageArgumentParser:
    parser = UsageArgumentParser(
        prog="doodi-airdrop",
        description="Mint tokens directly to a recipient while the mint authority is active.",
    )
    parser.add_argument("network", type=network_arg, help="network to use: devnet or mainnet")
    parser.add_argument("recipient", help="wallet address that receives the tokens")
    parser.add_argument("amount", type=positive_amount_arg, help="amount to mint in UI units")
    add_common_arguments(parser)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return run_workflow(lambda: airdrop_tokens(
        args.network,
        args.recipient,
        args.amount,
        args.dry_run,
        notifier=TelegramNotifier(),
    ))


if __name__ == "__main__":
    sys.exit(main())
