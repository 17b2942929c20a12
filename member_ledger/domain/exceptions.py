"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class MemberNotFoundError(DomainException):
    """Requested member does not exist in the record store"""

    pass


class InvalidWindowError(DomainException):
    """Billing window kind or month key could not be interpreted"""

    pass


class ReturnsAlreadyCalculatedError(DomainException):
    """Monthly returns for the requested month were already persisted"""

    def __init__(self, month_key: str):
        super().__init__(f"Returns for {month_key} already calculated")
        self.month_key = month_key
