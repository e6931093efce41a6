"""
Shared command-line plumbing: argument types, logging setup and the single
top-level handler that turns workflow outcomes into process exit codes
"""

import argparse
import asyncio
import logging
import sys
import traceback
from typing import Awaitable, Callable, Optional

from .amounts import parse_amount
from .config import NETWORKS
from .errors import LedgerExecutionError, TokenWorkflowError
from .workflow import WorkflowResult

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


class UsageArgumentParser(argparse.ArgumentParser):
    """Prints the error followed by the full usage text and exits with 1"""

    def error(self, message):
        print(f"❌ {message}", file=sys.stderr)
        self.print_help(sys.stderr)
        self.exit(EXIT_FAILURE)


def network_arg(value: str) -> str:
    network = value.lower()
    if network not in NETWORKS:
        raise argparse.ArgumentTypeError(
            f"invalid network: {value} (valid networks: {', '.join(NETWORKS)})"
        )
    return network


def amount_arg(value: str) -> Optional[float]:
    try:
        return parse_amount(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid amount: {value}")


def positive_amount_arg(value: str) -> float:
    amount = amount_arg(value)
    if amount is None:
        raise argparse.ArgumentTypeError("'all' is not accepted here, give an explicit amount")
    return amount


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--dry-run", action="store_true", help="show what would be done without executing")
    parser.add_argument("-v", "--verbose", action="store_true", help="log progress details")


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


def run_workflow(workflow: Callable[[], Awaitable[WorkflowResult]]) -> int:
    """Run one workflow to completion and map the outcome to an exit code"""
    try:
        result = asyncio.run(workflow())
    except LedgerExecutionError as e:
        logger.error(f"Ledger error payload: {e.payload!r}")
        print(f"❌ {e}", file=sys.stderr)
        if e.logs:
            print("Transaction logs:", file=sys.stderr)
            for i, line in enumerate(e.logs, 1):
                print(f"  {i}. {line}", file=sys.stderr)
        return EXIT_FAILURE
    except TokenWorkflowError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        print("\n🛑 Interrupted by operator", file=sys.stderr)
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        traceback.print_exc()
        return EXIT_FAILURE

    for warning in result.warnings:
        print(f"⚠️  {warning}", file=sys.stderr)
    print(result.message)
    return EXIT_OK
