"""
Token Burn

Permanently burn tokens from circulation to reduce total supply.

Usage examples:
  doodi-burn devnet 1000000                 # burn 1M tokens on devnet
  doodi-burn mainnet all                    # burn the whole wallet balance
  doodi-burn mainnet 500000 --dry-run       # preview only
  doodi-burn mainnet 250000 --from <addr>   # burn from a specific owner
"""

import logging
import sys
from typing import Optional

from solders.pubkey import Pubkey

from .amounts import format_amount, to_ui_amount, validate_positive_amount
from .cli import (UsageArgumentParser, add_common_arguments, amount_arg, network_arg,
                  run_workflow, setup_logging)
from .config import get_network_config
from .confirmation import confirm_action
from .errors import AuthorityMismatch, ValidationError
from .ledger import open_ledger, parse_pubkey
from .notifier import TelegramNotifier
from .receipts import ReceiptRecorder
from .state_store import StateStore
from .types import ActionReceipt, PendingAction
from .workflow import WorkflowResult, WorkflowRun, WorkflowState, notify, requery_supply

logger = logging.getLogger(__name__)


async def burn_tokens(
    network: str = "devnet",
    amount: Optional[float] = None,
    from_address: Optional[str] = None,
    dry_run: bool = False,
    *,
    store: Optional[StateStore] = None,
    recorder: Optional[ReceiptRecorder] = None,
    connect=open_ledger,
    confirm=confirm_action,
    notifier=None,
) -> WorkflowResult:
    """
    Burn `amount` UI units (None = whole balance) from the associated account
    of `from_address` (default: the wallet).

    Args:
        network: requested network; the token's own network wins on mismatch
        amount: human-readable amount, scaled with round(amount * 10**decimals)
        from_address: owner of the account to burn from
        dry_run: print the summary and stop before the ledger call
    """
    store = store or StateStore()
    recorder = recorder or ReceiptRecorder()
    run = WorkflowRun("burn")

    with run.tracking():
        record = store.load()

        print(f"🔥 {'DRY RUN - ' if dry_run else ''}Token Burn for {record.name}...")
        print(f"   Token: {record.name} ({record.symbol})")
        print(f"   Mint Address: {record.mint_address}")
        print(f"   Network: {record.network}")

        if record.network != network:
            logger.warning(f"Network mismatch: token is on {record.network}, but {network} specified")
            print(f"⚠️  Network mismatch: token is on {record.network}, but {network} specified.")
            print(f"   Using token network: {record.network}")
            network = record.network
        network_config = get_network_config(network)

        run.advance(WorkflowState.VALIDATING)
        if amount is not None and amount <= 0:
            raise ValidationError("Burn amount must be greater than 0")
        mint = parse_pubkey(record.mint_address, "mint address")

        async with connect(network_config) as ledger:
            wallet = ledger.wallet.pubkey()
            print(f"👛 Using wallet: {wallet}")

            print("\n🔍 Checking token mint info...")
            mint_info = await ledger.get_mint_info(mint)
            decimals = mint_info.decimals
            supply_before = mint_info.supply_ui
            print(f"   • Current total supply: {format_amount(supply_before, decimals)} {record.symbol}")
            print(f"   • Mint Authority: {mint_info.mint_authority or 'None (Revoked)'}")
            print(f"   • Freeze Authority: {mint_info.freeze_authority or 'None'}")

            owner = parse_pubkey(from_address, "--from address") if from_address else wallet
            if owner != wallet:
                # Only the account owner can sign a burn, and the wallet is the only signer loaded
                raise AuthorityMismatch(
                    f"Wallet {wallet} is not the owner of {owner}; only the token account owner can burn. "
                    f"Run this script with the owner's wallet instead of --from.",
                    expected=str(owner),
                    actual=str(wallet),
                )

            print("\n🏦 Getting token account...")
            account = await ledger.find_token_account(owner, mint)
            if account is None or account.amount == 0:
                raise ValidationError(f"No {record.symbol} tokens to burn in the account of {owner}")
            balance = to_ui_amount(account.amount, decimals)
            print(f"   • Token Account: {account.address}")
            print(f"   • Current Balance: {format_amount(balance, decimals)} {record.symbol}")

            if amount is None:
                burn_raw = account.amount
            else:
                burn_raw = validate_positive_amount(amount, decimals)
                if burn_raw > account.amount:
                    raise ValidationError(
                        f"Insufficient balance: requested to burn {format_amount(amount, decimals)} "
                        f"{record.symbol}, available {format_amount(balance, decimals)} {record.symbol}"
                    )

            burn_ui = to_ui_amount(burn_raw, decimals)
            new_supply_raw = mint_info.supply - burn_raw
            new_supply = to_ui_amount(new_supply_raw, decimals)
            percent = (burn_raw / mint_info.supply * 100) if mint_info.supply else 0.0

            action = PendingAction(
                description="\n".join([
                    "\n📊 Burn Summary:",
                    f"   • Will burn: {format_amount(burn_ui, decimals)} {record.symbol} ({burn_raw} base units)"
                    + (" - ENTIRE BALANCE" if amount is None else ""),
                    f"   • From account: {account.address}",
                    f"   • Owner: {owner}",
                    f"   • Current total supply: {format_amount(supply_before, decimals)} {record.symbol}",
                    f"   • New total supply after burn: {format_amount(new_supply, decimals)} {record.symbol}",
                    f"   • Percentage of supply burned: {percent:.2f}%",
                    "   • Burned tokens are permanently removed from circulation",
                ]),
                network=network,
                amount=burn_ui,
                target_address=account.address,
                is_dry_run=dry_run,
            )

            run.advance(WorkflowState.AWAITING_CONFIRMATION)
            if not confirm(action):
                if dry_run:
                    return run.abort("🎯 DRY RUN COMPLETE - No tokens were actually burned")
                return run.abort("❌ Token burn cancelled by user")

            run.advance(WorkflowState.EXECUTING)
            print(f"\n🔥 Executing token burn of {format_amount(burn_ui, decimals)} {record.symbol}...")
            signature = await ledger.burn(mint, Pubkey.from_string(account.address), burn_raw)

            run.advance(WorkflowState.RECORDING)
            print("\n🎉 Token burn completed successfully!")
            print(f"   • Burned: {format_amount(burn_ui, decimals)} {record.symbol}")
            print(f"   • Transaction: {signature}")
            print(f"   • Explorer: {network_config.explorer_link('tx', signature)}")

            supply_after = to_ui_amount(await requery_supply(run, ledger, mint, new_supply_raw), decimals)
            print("\n📊 Updated Token Supply:")
            print(f"   • New total supply: {format_amount(supply_after, decimals)} {record.symbol}")

        snapshot = record.snapshot()
        snapshot["network"] = network
        receipt = ActionReceipt(
            action="burn",
            token_snapshot=snapshot,
            action_details={
                "amount": burn_ui,
                "amountRaw": burn_raw,
                "fromAccount": account.address,
                "fromOwner": str(owner),
            },
            ledger_signature=signature,
            before_value=supply_before,
            after_value=supply_after,
        )
        receipt_path = run.best_effort("Saving burn record", lambda: recorder.record(receipt))
        if receipt_path:
            print(f"\n💾 Burn record saved to: {receipt_path}")

        await notify(
            notifier,
            f"{record.symbol} burn on {network}",
            f"Burned {format_amount(burn_ui, decimals)} {record.symbol}\n"
            f"Supply: {format_amount(supply_before, decimals)} → {format_amount(supply_after, decimals)}\n"
            f"TX: {signature}",
        )
        return run.finish("🔥 Token burn finished", signature=signature, receipt_path=receipt_path)


def build_parser() -> UsageArgumentParser:
    parser = UsageArgumentParser(
        prog="doodi-burn",
        description="Permanently burn tokens from circulation to reduce total supply.",
        epilog=(
            "Burned tokens are PERMANENTLY DESTROYED. Keep SOL for fees and try --dry-run first. "
            "Only the token account owner can burn tokens from that account."
        ),
    )
    parser.add_argument("network", nargs="?", default="devnet", type=network_arg,
                        help="network to use: devnet or mainnet (default: devnet)")
    parser.add_argument("amount", nargs="?", default=None, type=amount_arg,
                        help="amount to burn in UI units, or 'all' for the entire balance (default: all)")
    parser.add_argument("--from", dest="from_address", metavar="ADDRESS",
                        help="owner address to burn from (default: wallet address)")
    add_common_arguments(parser)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    return run_workflow(lambda: burn_tokens(
        args.network,
        args.amount,
        args.from_address,
        args.dry_run,
        notifier=TelegramNotifier(),
    ))


if __name__ == "__main__":
    sys.exit(main())
