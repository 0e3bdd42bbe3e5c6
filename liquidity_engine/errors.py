"""
Engine Exceptions

Every refusal is raised to the caller. Nothing here is swallowed inside
the engine: a rejected payment leaves the ledger and the obligation
exactly as they were.
"""


class EngineError(Exception):
    """Base exception for engine operations."""
    pass


class InvalidAmountError(EngineError, ValueError):
    """A payment, receipt, contribution or withdrawal was not positive."""

    def __init__(self, operation: str, amount):
        self.operation = operation
        self.amount = amount
        super().__init__(f"{operation} amount must be positive, got {amount}")


class ObligationNotFoundError(EngineError, KeyError):
    """No recurring expense or income with that id."""
    pass


class DuplicateObligationError(EngineError):
    """An obligation with that id is already registered."""
    pass


class TransactionNotFoundError(EngineError, KeyError):
    """No transaction with that id in the ledger."""
    pass


class DuplicateTransactionError(EngineError):
    """A transaction with that id is already in the ledger."""
    pass


class AccountNotFoundError(EngineError, KeyError):
    """No account with that id."""
    pass


class DuplicateAccountError(EngineError):
    """An account with that id is already registered."""
    pass


class PrimaryAccountConflictError(EngineError):
    """More than one account claims to be the primary operating account."""
    pass


class GoalNotFoundError(EngineError, KeyError):
    """No saving goal with that id."""
    pass


class DuplicateGoalError(EngineError):
    """A saving goal with that id is already registered."""
    pass


class InsufficientGoalBalanceError(EngineError):
    """A withdrawal would take a saving goal below zero."""
    pass


class CycleCheckError(EngineError):
    """The cycle check could not run; persisted state is untouched."""
    pass
