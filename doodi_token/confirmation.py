"""
Irreversible-action gate

Nothing that burns, mints or revokes runs until the operator has read the
exact amount, account and network and typed an explicit yes.
"""

import logging
from typing import Callable

from .types import PendingAction

logger = logging.getLogger(__name__)

AFFIRMATIVE_ANSWERS = ("yes", "y")
RULE = "=" * 60

Prompt = Callable[[str], str]


def is_affirmative(answer: str) -> bool:
    return answer.strip().lower() in AFFIRMATIVE_ANSWERS


def confirm_action(action: PendingAction, prompt: Prompt = input) -> bool:
    """
    Show the summary and ask for confirmation.

    Dry runs print the summary and return False without reading input.
    Anything other than yes/y (including an empty line or EOF) declines.
    """
    if action.is_dry_run:
        print(action.description)
        print("\n🎯 DRY RUN COMPLETE - nothing was sent to the ledger")
        logger.info("Dry run, confirmation skipped")
        return False

    print(f"\n{RULE}")
    print("⚠️  CONFIRMATION REQUIRED ⚠️")
    print(RULE)
    print(action.description)
    print(f"   • Network: {action.network.upper()}")
    print("   • This operation is IRREVERSIBLE!")
    print(RULE)

    try:
        answer = prompt("Do you want to proceed? (yes/no): ")
    except EOFError:
        answer = ""

    confirmed = is_affirmative(answer)
    logger.info(f"Operator answered {answer.strip()!r}: {'confirmed' if confirmed else 'declined'}")
    return confirmed
