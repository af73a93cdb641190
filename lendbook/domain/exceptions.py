"""Domain-specific exceptions"""

from decimal import Decimal


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Request is missing data or carries an invalid value"""

    pass


class ClientNotFoundError(ValidationError):
    """Client selection does not resolve to a registered client"""

    pass


class InvalidAmountError(ValidationError):
    """Money amount must be greater than zero"""

    pass


class LoanNotFoundError(DomainException):
    """No loan with the given id"""

    pass


class ExpenseNotFoundError(DomainException):
    """No expense with the given id"""

    pass


class LoanNotActiveError(DomainException):
    """Loan is Paid or Restructured and cannot change any more"""

    pass


class LimitExceededError(DomainException):
    """Requested exposure is above the client's credit limit"""

    field = "principal"

    def __init__(self, exposure: Decimal, limit: Decimal, tier_label: str):
        self.exposure = exposure
        self.limit = limit
        self.tier_label = tier_label
        super().__init__(
            f"Exposure {exposure} exceeds credit limit {limit} ({tier_label})"
        )


class TermExceededError(DomainException):
    """Term is longer than the frequency allows"""

    field = "term"

    def __init__(self, term: int, max_term: int, frequency: str):
        self.term = term
        self.max_term = max_term
        self.frequency = frequency
        super().__init__(f"Term {term} exceeds maximum of {max_term} for {frequency} loans")


class PersistenceError(DomainException):
    """Backing store is unreachable or rejected the write"""

    pass


class FormatError(DomainException):
    """Backup file is not a valid dataset export"""

    pass
