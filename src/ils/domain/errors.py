class AppError(Exception):
    """Base app error."""


class ValidationError(AppError):
    pass


class NotFoundError(AppError):
    pass


class InvalidReferenceError(AppError):
    """A customer or product id given to the ledger does not exist."""


class InsufficientStockError(AppError):
    pass


class StockUnderflowError(InsufficientStockError):
    pass


class StorageError(AppError):
    """The transactional store failed; the operation was rolled back."""


class AuthorizationError(AppError):
    pass
