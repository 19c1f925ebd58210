"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Numeric input is malformed (negative term, non-finite rate, unknown plan type)"""

    pass


class InvalidPaymentAmount(DomainException):
    """Payment is non-positive, exceeds the remaining balance, or duplicates this month's lease payment"""

    pass


class AdvisoryAPIError(DomainException):
    """Advisory service returned an error or is unavailable"""

    pass
