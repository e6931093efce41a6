"""
Error taxonomy for the token workflows.

Every fatal error derives from TokenWorkflowError and is turned into a
non-zero exit code by doodi_token.cli.run_workflow. PersistenceWarning is
deliberately outside that hierarchy: it is raised after a ledger action has
already been committed and must never abort the run.
"""

from typing import Any, List, Optional


class TokenWorkflowError(Exception):
    """Base class for errors that end a workflow run"""


class ConfigMissing(TokenWorkflowError):
    """The token info file does not exist yet"""


NotFoundError = ConfigMissing


class ValidationError(TokenWorkflowError):
    """Bad amount, insufficient balance, invalid address or broken state file"""


class AuthorityMismatch(TokenWorkflowError):
    """The loaded wallet is not the authority the action requires"""

    def __init__(self, message: str, expected: Optional[str] = None, actual: Optional[str] = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class LedgerExecutionError(TokenWorkflowError):
    """The ledger rejected or failed the transaction"""

    def __init__(self, message: str, payload: Any = None, logs: Optional[List[str]] = None):
        super().__init__(message)
        self.payload = payload
        self.logs = list(logs or [])


class PersistenceWarning(Exception):
    """A receipt or state write failed after a committed ledger action"""
