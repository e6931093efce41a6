"""
Create the DOODi token mint

Creates the mint and the creator's associated token account without any
initial minting, keeps the mint authority for later airdrops and saves the
result to doodi-token-info.json.

Usage examples:
  doodi-create                          # devnet, default wallet
  doodi-create devnet --dry-run         # preview only
  doodi-create mainnet ~/wallet.json    # mainnet with a custom wallet
"""

import json
import logging
import sys
from typing import Optional

from .amounts import format_amount
from .cli import (UsageArgumentParser, add_common_arguments, network_arg, run_workflow,
                  setup_logging)
from .config import NETWORKS, TOKEN_CONFIG, TokenConfig, get_network_config
from .confirmation import confirm_action
from .errors import LedgerExecutionError
from .ledger import open_ledger
from .notifier import TelegramNotifier
from .state_store import StateStore
from .types import PendingAction, TokenRecord, TokenStatus
from .wallet import ensure_sufficient_balance
from .workflow import WorkflowResult, WorkflowRun, WorkflowState, notify

logger = logging.getLogger(__name__)


async def create_token(
    network: str = "devnet",
    wallet_path: Optional[str] = None,
    dry_run: bool = False,
    *,
    store: Optional[StateStore] = None,
    connect=open_ledger,
    confirm=confirm_action,
    notifier=None,
    token: TokenConfig = TOKEN_CONFIG,
) -> WorkflowResult:
    store = store or StateStore()
    run = WorkflowRun("create")

    with run.tracking():
        network_config = get_network_config(network)
        existing = store.load() if store.exists() else None

        print(f"🚀 Creating {token.name} on {network_config.name}...\n")
        print(f"🌐 Network: {network_config.name} ({network_config.key})")
        print(f"🔗 RPC URL: {network_config.url}\n")

        run.advance(WorkflowState.VALIDATING)
        async with connect(network_config, wallet_path) as ledger:
            wallet = ledger.wallet.pubkey()
            print(f"👛 Using wallet: {wallet}")
            await ensure_sufficient_balance(ledger, network_config, allow_airdrop=not dry_run)

            lines = [
                "🪙 CREATE TOKEN MINT:",
                f"   • Token: {token.name} ({token.symbol})",
                f"   • Decimals: {token.decimals}",
                f"   • Maximum supply: {format_amount(token.max_supply, 0)} {token.symbol}",
                "   • Initial supply: 0 (tokens are minted by airdrops)",
                f"   • Payer and mint authority: {wallet}",
                "   • Freeze authority: None",
            ]
            if existing is not None:
                lines.append(
                    f"   • Replaces the record of {existing.symbol} mint {existing.mint_address} "
                    f"({existing.network}, {existing.status.value}) in {store.path}"
                )
            action = PendingAction(
                description="\n".join(lines),
                network=network_config.key,
                is_dry_run=dry_run,
            )

            run.advance(WorkflowState.AWAITING_CONFIRMATION)
            if not confirm(action):
                if dry_run:
                    return run.abort("🎯 DRY RUN COMPLETE - no token was created")
                return run.abort("❌ Token creation cancelled by user")

            run.advance(WorkflowState.EXECUTING)
            print(f"\n🪙 Creating {token.name} Mint...")
            mint = await ledger.create_mint(token.decimals)
            print(f"✅ Token Mint Created: {mint}")

            record = TokenRecord(
                name=token.name,
                symbol=token.symbol,
                decimals=token.decimals,
                mint_address=str(mint),
                network=network_config.key,
                mint_authority=str(wallet),
                status=TokenStatus.ACTIVE,
            )

            print("\n🏦 Creating associated token account...")
            try:
                token_account = await ledger.get_or_create_associated_account(wallet, mint)
            except LedgerExecutionError:
                # The mint exists on-chain already; keep it on disk before failing
                run.best_effort("Saving token info", lambda: store.save(record))
                raise
            record.token_account = str(token_account)
            print(f"✅ Token Account Created: {token_account}")
            print("\n💡 Skipping initial token minting - tokens will be minted during airdrop operations")

            run.advance(WorkflowState.RECORDING)
            print("\n💾 Saving token info...")
            if run.best_effort("Saving token info", lambda: store.save(record)):
                print("✅ Token info saved")
            else:
                logger.error(f"Token record was not saved, keep it manually:\n"
                             f"{json.dumps(record.to_dict(), indent=2)}")

            print("\n📊 Verifying token creation...")
            try:
                mint_info = await ledger.get_mint_info(mint)
                print(f"   Mint Address: {mint}")
                print(f"   Decimals: {mint_info.decimals}")
                print(f"   Current Supply: {mint_info.supply} ({format_amount(mint_info.supply_ui, mint_info.decimals)} tokens)")
                print(f"   Mint Authority: {mint_info.mint_authority} (Active)")
                print(f"   Freeze Authority: {mint_info.freeze_authority or 'None'}")
            except LedgerExecutionError as e:
                logger.warning(f"Could not verify the new mint: {e}")

        print("\n🔗 View on Solana Explorer:")
        print(f"   Mint: {network_config.explorer_link('address', str(mint))}")
        print(f"   Creator Account: {network_config.explorer_link('address', str(token_account))}")
        print("\n📋 Next Steps:")
        print("   • Use doodi-airdrop to mint tokens directly to recipients")
        print("   • Use doodi-revoke to finalize the token supply when done")

        await notify(
            notifier,
            f"{token.symbol} created on {network_config.key}",
            f"Mint: {mint}\nMint authority: {wallet}",
        )
        return run.finish(f"🎉 {token.name} creation completed successfully!")


def build_parser() -> UsageArgumentParser:
    supported = ", ".join(f"{key} ({cfg.url})" for key, cfg in NETWORKS.items())
    parser = UsageArgumentParser(
        prog="doodi-create",
        description=f"Create the {TOKEN_CONFIG.name} token mint without initial minting (airdrop-ready).",
        epilog=f"Supported networks: {supported}",
    )
    parser.add_argument("network", nargs="?", default="devnet", type=network_arg,
                        help="network to deploy to: devnet or mainnet (default: devnet)")
    parser.add_argument("wallet_path", nargs="?", default=None,
                        help="custom wallet keypair file (default: Solana CLI wallet)")
    add_common_arguments(parser)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    wallet_path = None if args.wallet_path in (None, "null") else args.wallet_path
    return run_workflow(lambda: create_token(
        args.network,
        wallet_path,
        args.dry_run,
        notifier=TelegramNotifier(),
    ))


if __name__ == "__main__":
    sys.exit(main())
