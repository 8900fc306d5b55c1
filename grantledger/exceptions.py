"""
Grant Ledger Exceptions

Error codes and exception classes for the proposal ledger.

Every rejected ledger operation carries an ``ErrorCode``. The numeric values
are stable: clients map them to user-facing messages.
"""

from enum import IntEnum


class ErrorCode(IntEnum):
    """Stable failure codes returned by ledger operations."""
    NOT_AUTHORIZED = 100
    INVALID_TITLE = 101
    INVALID_DESCRIPTION = 102
    INVALID_AMOUNT = 103
    INVALID_RECIPIENT = 104
    INVALID_DURATION = 105
    PROPOSAL_ALREADY_EXISTS = 106
    PROPOSAL_NOT_FOUND = 107
    PROPOSAL_NOT_PENDING = 108
    INVALID_GOVERNANCE_ADDRESS = 109
    GOVERNANCE_ALREADY_SET = 110
    VOTING_NOT_STARTED = 111
    VOTING_ALREADY_ENDED = 112
    ALREADY_VOTED = 113
    VOTING_NOT_ENDED = 114
    TRANSFER_FAILED = 115
    INVALID_FEE = 116
    INVALID_UPDATE_PARAM = 117
    MAX_PROPOSALS_EXCEEDED = 118
    INVALID_PROPOSAL_TYPE = 119
    INVALID_START_TIME = 120
    INVALID_END_TIME = 121
    INVALID_QUORUM = 122
    INVALID_THRESHOLD = 123
    PROPOSAL_NOT_ACTIVE = 124
    PROPOSAL_ALREADY_FINALIZED = 125
    PROPOSAL_NOT_APPROVED = 126
    INVALID_VOTE = 127
    INVALID_FUNDING_GOAL = 128
    INVALID_MILESTONE = 129

    def __str__(self) -> str:
        return f"{self.name} ({self.value})"


class GrantLedgerException(Exception):
    """Base exception for the grant ledger."""
    pass


class ConfigurationError(GrantLedgerException):
    """Configuration error."""
    pass


class LedgerError(GrantLedgerException):
    """A ledger operation was rejected. ``code`` identifies the exact reason."""

    def __init__(self, code: ErrorCode, message: str = ""):
        self.code = ErrorCode(code)
        self.message = message or self.code.name.replace("_", " ").lower()
        super().__init__(f"{self.code}: {self.message}")


class AuthorizationError(LedgerError):
    """No governance contract, or the caller may not perform the action."""
    pass


class ValidationError(LedgerError):
    """A supplied field is out of range."""
    pass


class LifecycleError(LedgerError):
    """The proposal is in the wrong phase for the action."""
    pass


class CapacityError(LedgerError):
    """The ledger reached its maximum proposal count."""
    pass


class ConflictError(LedgerError):
    """Duplicate title or duplicate vote."""
    pass


class FundsTransferError(LedgerError):
    """The proposal fee could not be transferred."""

    def __init__(self, message: str = ""):
        super().__init__(ErrorCode.TRANSFER_FAILED, message)


_ERROR_CLASSES = {
    ErrorCode.NOT_AUTHORIZED: AuthorizationError,
    ErrorCode.PROPOSAL_ALREADY_EXISTS: ConflictError,
    ErrorCode.ALREADY_VOTED: ConflictError,
    ErrorCode.MAX_PROPOSALS_EXCEEDED: CapacityError,
    ErrorCode.PROPOSAL_NOT_FOUND: LifecycleError,
    ErrorCode.PROPOSAL_NOT_PENDING: LifecycleError,
    ErrorCode.GOVERNANCE_ALREADY_SET: LifecycleError,
    ErrorCode.VOTING_NOT_STARTED: LifecycleError,
    ErrorCode.VOTING_ALREADY_ENDED: LifecycleError,
    ErrorCode.VOTING_NOT_ENDED: LifecycleError,
    ErrorCode.PROPOSAL_NOT_ACTIVE: LifecycleError,
    ErrorCode.PROPOSAL_ALREADY_FINALIZED: LifecycleError,
    ErrorCode.PROPOSAL_NOT_APPROVED: LifecycleError,
}


def error_for(code: ErrorCode, message: str = "") -> LedgerError:
    """Build the exception matching *code*'s category."""
    code = ErrorCode(code)
    if code == ErrorCode.TRANSFER_FAILED:
        return FundsTransferError(message)
    return _ERROR_CLASSES.get(code, ValidationError)(code, message)
