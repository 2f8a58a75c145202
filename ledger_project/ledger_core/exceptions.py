from django.core.exceptions import ObjectDoesNotExist, ValidationError


class JournalValidationError(ValidationError):
    """Raised when journal input is malformed (missing date, no lines, bad amounts, bad range)."""
    pass


class UnbalancedJournalError(JournalValidationError):
    """Raised when a JournalEntry fails the double-entry balance check."""
    pass


class NotFoundError(ObjectDoesNotExist):
    """Raised when an account, entry or period does not exist for the company."""
    pass


class FailedPreconditionError(Exception):
    """Raised when an operation is not allowed in the object's current state
    (posting a posted entry, voiding a draft, writing into a closed period)."""
    pass


class LedgerIntegrityError(Exception):
    """Raised when the ledger no longer satisfies the double-entry identities."""

    def __init__(self, message, faults=None):
        super().__init__(message)
        self.faults = faults or []
