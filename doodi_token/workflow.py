"""
Run tracking for the confirmed-irreversible-operation workflows

LOADING_STATE -> VALIDATING -> AWAITING_CONFIRMATION -> EXECUTING -> RECORDING -> DONE
with ABORTED before the ledger call, FAILED from EXECUTING.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Set

from .errors import LedgerExecutionError, PersistenceWarning, TokenWorkflowError

logger = logging.getLogger(__name__)


class WorkflowState(Enum):
    LOADING_STATE = "loading_state"
    VALIDATING = "validating"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    EXECUTING = "executing"
    RECORDING = "recording"
    DONE = "done"
    ABORTED = "aborted"
    FAILED = "failed"


TRANSITIONS: Dict[WorkflowState, Set[WorkflowState]] = {
    WorkflowState.LOADING_STATE: {WorkflowState.VALIDATING, WorkflowState.ABORTED},
    WorkflowState.VALIDATING: {WorkflowState.AWAITING_CONFIRMATION, WorkflowState.ABORTED, WorkflowState.DONE},
    WorkflowState.AWAITING_CONFIRMATION: {WorkflowState.EXECUTING, WorkflowState.ABORTED},
    WorkflowState.EXECUTING: {WorkflowState.RECORDING, WorkflowState.FAILED},
    WorkflowState.RECORDING: {WorkflowState.DONE},
    WorkflowState.DONE: set(),
    WorkflowState.ABORTED: set(),
    WorkflowState.FAILED: set(),
}


@dataclass
class WorkflowResult:
    """Final outcome of one workflow run"""
    action: str
    state: WorkflowState
    message: str
    signature: Optional[str] = None
    receipt_path: Optional[Path] = None
    warnings: List[str] = field(default_factory=list)


class WorkflowRun:
    def __init__(self, action: str):
        self.action = action
        self.state = WorkflowState.LOADING_STATE
        self.history: List[WorkflowState] = [self.state]
        self.warnings: List[str] = []

    def advance(self, state: WorkflowState) -> None:
        if state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"{self.action}: illegal transition {self.state.value} -> {state.value}")
        logger.debug(f"{self.action}: {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    @contextmanager
    def tracking(self) -> Iterator["WorkflowRun"]:
        """Move to ABORTED or FAILED when a fatal error escapes, then re-raise it"""
        try:
            yield self
        except TokenWorkflowError:
            if self.state is WorkflowState.EXECUTING:
                self.advance(WorkflowState.FAILED)
            elif WorkflowState.ABORTED in TRANSITIONS[self.state]:
                self.advance(WorkflowState.ABORTED)
            raise

    def best_effort(self, what: str, write: Callable[[], Any]) -> Any:
        """Run a post-ledger write; a failure becomes a warning, never an error"""
        try:
            return write()
        except (PersistenceWarning, OSError) as e:
            message = f"{what} failed: {e}"
            logger.warning(f"⚠️ {message} (the ledger action itself succeeded)")
            self.warnings.append(message)
            return None

    def finish(self, message: str, **kwargs) -> WorkflowResult:
        self.advance(WorkflowState.DONE)
        return WorkflowResult(self.action, self.state, message, warnings=list(self.warnings), **kwargs)

    def abort(self, message: str) -> WorkflowResult:
        self.advance(WorkflowState.ABORTED)
        return WorkflowResult(self.action, self.state, message, warnings=list(self.warnings))


async def requery_supply(run: WorkflowRun, ledger, mint, expected: int) -> int:
    """Fresh post-action supply; falls back to the computed value if the query fails"""
    try:
        return (await ledger.get_mint_info(mint)).supply
    except LedgerExecutionError as e:
        message = f"Could not re-query supply after the transaction, using computed value: {e}"
        logger.warning(message)
        run.warnings.append(message)
        return expected


async def notify(notifier, title: str, message: str) -> None:
    if notifier is None:
        return
    await notifier.send_alert(title, message, "SUCCESS")
