class LedgerError(ValueError):
    pass


class ValidationError(LedgerError):
    pass


class DuplicateError(LedgerError):
    pass


class InvalidReferenceError(LedgerError):
    """An entry points at a category or store that is missing or not the owner's."""


class AuthenticationError(LedgerError):
    pass


class AuthorizationError(LedgerError):
    pass


class NotFoundError(LedgerError):
    pass
