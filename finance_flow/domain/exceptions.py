"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed; raised before any store mutation"""

    pass


class StorageError(DomainException):
    """Record store is unavailable or the transaction was aborted"""

    pass


class NotFoundError(DomainException):
    """Referenced record does not exist"""

    pass


class AdviceServiceError(DomainException):
    """Advice model endpoint returned an error or is unavailable"""

    pass
